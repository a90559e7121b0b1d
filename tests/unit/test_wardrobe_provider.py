# =============================================================================
# tests/unit/test_wardrobe_provider.py
# Unit Tests for WardrobeProvider
# =============================================================================

import pytest
from unittest.mock import MagicMock

from conftest import make_garment


@pytest.fixture
def service():
    mock_service = MagicMock()
    mock_service.read_local.return_value = [make_garment("cached")]
    mock_service.fetch_and_sync.return_value = [make_garment("fresh"), make_garment("cached")]
    return mock_service


@pytest.fixture
def provider(service):
    from wardrobe_core.state.wardrobe_provider import WardrobeProvider

    return WardrobeProvider(service)


def _recorder(provider):
    snapshots = []
    provider.register_callback(snapshots.append)
    return snapshots


class TestTwoPhaseLoad:
    """Local paint first, remote paint always supersedes"""

    def test_local_then_remote(self, provider, service):
        from wardrobe_core.state.wardrobe_provider import ProviderStatus

        snapshots = _recorder(provider)

        provider.set_user("u1")

        assert [s.source for s in snapshots] == ["local", "remote"]
        assert [g.id for g in snapshots[0].items] == ["cached"]
        assert [g.id for g in provider.items] == ["fresh", "cached"]
        assert provider.status == ProviderStatus.READY
        assert provider.initial_load_complete
        assert provider.sync_error is None
        service.initialize.assert_called_once()

    def test_empty_cache_skips_local_paint(self, provider, service):
        service.read_local.return_value = []
        snapshots = _recorder(provider)

        provider.set_user("u1")

        assert [s.source for s in snapshots] == ["remote"]

    def test_remote_failure_keeps_local_paint(self, provider, service):
        from wardrobe_core.errors import RemoteStoreError
        from wardrobe_core.state.wardrobe_provider import ProviderStatus, SYNC_ERROR_MESSAGE

        service.fetch_and_sync.side_effect = RemoteStoreError("offline")

        provider.set_user("u1")

        assert [g.id for g in provider.items] == ["cached"]
        assert provider.status == ProviderStatus.READY
        assert provider.initial_load_complete
        assert provider.sync_error == SYNC_ERROR_MESSAGE
        assert provider.last_error.details["owner_id"] == "u1"

    def test_success_clears_previous_error(self, provider, service):
        from wardrobe_core.errors import RemoteStoreError

        service.fetch_and_sync.side_effect = RemoteStoreError("offline")
        provider.set_user("u1")
        service.fetch_and_sync.side_effect = None

        provider.refresh()

        assert provider.sync_error is None
        assert [g.id for g in provider.items] == ["fresh", "cached"]

    def test_same_user_does_not_reload(self, provider, service):
        provider.set_user("u1")
        provider.set_user("u1")

        assert service.fetch_and_sync.call_count == 1

    def test_refresh_reloads(self, provider, service):
        provider.set_user("u1")
        provider.refresh()

        assert service.fetch_and_sync.call_count == 2
        assert provider.generation == 2


class TestUserSwitch:
    """Items never carry over from one owner to the next"""

    @pytest.fixture
    def two_users(self, service):
        from wardrobe_core.errors import RemoteStoreError

        cache = {"A": [make_garment("a-item", "A")], "B": []}

        def fetch(owner_id):
            if owner_id == "B":
                raise RemoteStoreError("offline")
            return [make_garment("a-item", "A")]

        service.read_local.side_effect = lambda owner_id: cache[owner_id]
        service.fetch_and_sync.side_effect = fetch
        return service

    def test_switch_with_empty_cache_and_failing_remote(self, provider, two_users):
        from wardrobe_core.state.wardrobe_provider import ProviderStatus

        provider.set_user("A")
        assert [g.id for g in provider.items] == ["a-item"]

        provider.set_user("B")

        assert provider.user_id == "B"
        assert provider.items == []
        assert provider.status == ProviderStatus.READY
        assert provider.last_error.details["owner_id"] == "B"

    def test_switch_only_paints_new_owner(self, provider, service):
        service.read_local.side_effect = lambda owner_id: [make_garment(f"{owner_id}-cached", owner_id)]
        service.fetch_and_sync.side_effect = lambda owner_id: [make_garment(f"{owner_id}-fresh", owner_id)]
        snapshots = _recorder(provider)

        provider.set_user("A")
        provider.set_user("B")

        b_snapshots = [s for s in snapshots if s.generation == provider.generation]
        assert [s.source for s in b_snapshots] == ["local", "remote"]
        assert all(g.owner_id == "B" for s in b_snapshots for g in s.items)
        assert {g.owner_id for g in provider.items} == {"B"}

    def test_switch_back_clears_previous_error(self, provider, two_users):
        provider.set_user("B")
        assert provider.sync_error is not None

        provider.set_user("A")

        assert provider.sync_error is None
        assert [g.id for g in provider.items] == ["a-item"]


class TestSignOut:
    """Sign-out clears memory, not the cache"""

    def test_sign_out_clears_items(self, provider, service):
        from wardrobe_core.state.wardrobe_provider import ProviderStatus

        provider.set_user("u1")
        provider.set_user(None)

        assert provider.items == []
        assert provider.status == ProviderStatus.SIGNED_OUT
        assert provider.initial_load_complete

    def test_initial_load_complete_without_user(self, provider):
        provider.set_user(None)

        assert provider.initial_load_complete

    def test_refresh_without_user_is_noop(self, provider, service):
        provider.refresh()

        service.fetch_and_sync.assert_not_called()


class TestSupersededLoads:
    """Paints from an older cycle are dropped"""

    def test_sign_out_during_load_drops_remote_paint(self, provider, service):
        from wardrobe_core.state.wardrobe_provider import ProviderStatus

        def fetch(owner_id):
            provider.set_user(None)
            return [make_garment("late")]

        service.fetch_and_sync.side_effect = fetch
        snapshots = _recorder(provider)

        provider.set_user("u1")

        assert [s.source for s in snapshots] == ["local", "signed_out"]
        assert provider.items == []
        assert provider.status == ProviderStatus.SIGNED_OUT

    def test_callback_errors_are_contained(self, provider):
        def broken(snapshot):
            raise ValueError("bad observer")

        provider.register_callback(broken)
        provider.set_user("u1")

        assert provider.initial_load_complete
