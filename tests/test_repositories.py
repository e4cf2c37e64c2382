import pytest

from infrastructure.database.repositories import BaseRepository, ReadRepository


@pytest.mark.parametrize("fixture_name", ["device_repo", "heartbeat_repo", "command_repo", "status_repo"])
def test_keyed_repositories_return_none_for_missing_key(request, fixture_name):
    repo = request.getfixturevalue(fixture_name)

    assert isinstance(repo, ReadRepository)
    assert repo.get("missing") is None


def test_reading_repository_wraps_backend(reading_repo, db_handler):
    assert isinstance(reading_repo, BaseRepository)
    assert reading_repo.latest("missing") is None
    assert reading_repo.count("missing") == 0


def test_repositories_map_rows_to_domain_objects(seed, device_repo, command_repo, status_repo, t0):
    device_id = seed.device("esp32_map", display_name=None)
    command_id = seed.command(device_id, pump=True, auto=True)

    device = device_repo.get(device_id)
    command = command_repo.get(command_id)
    status, inserted = status_repo.write(device_id, pump_status=True, automatic_mode=False, at=t0)

    assert device.display_name == device_id
    assert command.pump_control is True and command.automatic_mode is True
    assert command.sequence >= 1
    assert inserted is True
    assert status.updated_at == t0
