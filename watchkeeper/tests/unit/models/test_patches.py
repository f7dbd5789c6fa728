"""
Tests for typed record patches.
"""

import pytest

from watchkeeper.models import (
    AddRequiredGroup,
    ConfigDocument,
    Endpoint,
    EndpointStatus,
    RemoveRequiredGroup,
    SetAutoRestart,
    SetBanned,
    SetLanguage,
    SetOnline,
    SetStatus,
    StopWatcher,
    User,
)
from watchkeeper.models.patches import apply_config_patch, apply_endpoint_patch, apply_user_patch


@pytest.fixture
def endpoint():
    return Endpoint(id="e1", owner_id=1, host="h", port=19132, status=EndpointStatus.ACTIVE, auto_restart=True)


def test_stop_watcher_clears_auto_restart(endpoint):
    stopped = apply_endpoint_patch(endpoint, StopWatcher())

    assert stopped.status is EndpointStatus.STOPPED
    assert stopped.auto_restart is False
    # Patches never mutate their input
    assert endpoint.status is EndpointStatus.ACTIVE


def test_set_status_keeps_other_fields(endpoint):
    patched = apply_endpoint_patch(endpoint, SetStatus(EndpointStatus.RECONNECTING))

    assert patched.status is EndpointStatus.RECONNECTING
    assert patched.auto_restart is True
    assert apply_endpoint_patch(patched, SetAutoRestart(False)).auto_restart is False


def test_user_patches():
    user = User(user_id=1)

    assert apply_user_patch(user, SetBanned(True)).is_banned is True
    assert apply_user_patch(user, SetLanguage("de")).language == "de"
    assert user.is_banned is False


class TestConfigDocument:
    def test_defaults(self):
        document = ConfigDocument()
        assert document.online is True
        assert document.admin_notifications is False
        assert document.required_groups == []

    def test_required_groups_deduplicated_on_load(self):
        document = ConfigDocument.model_validate({"required_groups": ["@a", "@b", "@a"]})
        assert document.required_groups == ["@a", "@b"]

    def test_unknown_keys_ignored(self):
        assert ConfigDocument.model_validate({"online": False, "legacy": 1}).online is False

    def test_group_patches(self):
        document = apply_config_patch(ConfigDocument(), AddRequiredGroup("@a"))
        document = apply_config_patch(document, AddRequiredGroup("@a"))
        assert document.required_groups == ["@a"]

        document = apply_config_patch(document, RemoveRequiredGroup("@missing"))
        assert document.required_groups == ["@a"]
        assert apply_config_patch(document, RemoveRequiredGroup("@a")).required_groups == []

    def test_set_online(self):
        assert apply_config_patch(ConfigDocument(), SetOnline(False)).online is False
