import streamlit as st

from wardrobe_core.errors import handle_error
from wardrobe_core.logging import get_logger
from wardrobe_core.state.wardrobe_provider import ProviderStatus, WardrobeProvider

logger = get_logger(__name__)

PROVIDER_KEY = "wardrobe_provider"

# Central registry for session-state keys used by the wardrobe views.
SESSION_DEFAULTS = {
    PROVIDER_KEY: None,
    "user_id": None,
    "_sync_notice_shown": None,
}


def init_state():
    """Initialize session state with defaults."""
    for k, v in SESSION_DEFAULTS.items():
        if k not in st.session_state:
            st.session_state[k] = v


def _build_provider() -> WardrobeProvider:
    from wardrobe_core.config import get_settings
    from wardrobe_core.data.supabase_client import RemoteStore
    from wardrobe_core.offline import get_local_database
    from wardrobe_core.services import WardrobeService

    settings = get_settings()
    service = WardrobeService(get_local_database(settings.db_path), RemoteStore(settings=settings))
    logger.info("Created wardrobe provider for session")
    return WardrobeProvider(service)


def get_wardrobe_provider() -> WardrobeProvider:
    """The provider bound to this Streamlit session (created on first use)."""
    init_state()
    if st.session_state[PROVIDER_KEY] is None:
        st.session_state[PROVIDER_KEY] = _build_provider()
    return st.session_state[PROVIDER_KEY]


def show_sync_notice(provider: WardrobeProvider) -> None:
    """Show the "could not sync" notice once per failed load."""
    if provider.last_error is None:
        st.session_state["_sync_notice_shown"] = None
        return
    if st.session_state.get("_sync_notice_shown") == provider.generation:
        return
    handle_error(
        provider.last_error,
        user_message=f"Error loading wardrobe. {provider.sync_error}",
    )
    st.session_state["_sync_notice_shown"] = provider.generation


def sync_user(user_id):
    """Bind the signed-in user to the session provider and load if needed."""
    init_state()
    provider = get_wardrobe_provider()
    if st.session_state["user_id"] != user_id or provider.status == ProviderStatus.SIGNED_OUT:
        st.session_state["user_id"] = user_id
        provider.set_user(user_id)
    show_sync_notice(provider)
    return provider


def refresh_wardrobe():
    """Manual refresh from a UI action."""
    provider = get_wardrobe_provider()
    provider.refresh()
    show_sync_notice(provider)
    return provider


def clear_session():
    """Sign out: clear session state but keep the local cache on disk."""
    provider = st.session_state.get(PROVIDER_KEY)
    if provider is not None:
        provider.set_user(None)

    for key in list(st.session_state.keys()):
        if key != PROVIDER_KEY:
            del st.session_state[key]

    for k, v in SESSION_DEFAULTS.items():
        if k not in st.session_state:
            st.session_state[k] = v
