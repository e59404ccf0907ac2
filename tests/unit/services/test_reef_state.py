import threading

import pytest

from reef.risp.values import Boolean, Number
from reef.services.reef_state import ReefState


def test_get_before_first_commit_is_none():
    state = ReefState()

    assert state.get("Tank_Temperature") is None
    assert "Tank_Temperature" not in state


def test_commit_returns_replaced_value():
    state = ReefState()

    assert state.commit("Tank_Temperature", Number(78.1)) is None
    assert state.commit("Tank_Temperature", Number(78.4)) == Number(78.1)
    assert state.get("Tank_Temperature") == Number(78.4)
    assert state.committed_at("Tank_Temperature") is not None


def test_commit_rejects_plain_python_values():
    with pytest.raises(TypeError):
        ReefState().commit("Tank_Temperature", 78.1)


def test_snapshot_is_a_point_in_time_copy():
    state = ReefState()
    state.commit("Heater_Outlet", Boolean(True))

    snapshot = state.snapshot()
    state.commit("Heater_Outlet", Boolean(False))
    state.commit("Return_Pump", Boolean(True))

    assert snapshot["Heater_Outlet"] == Boolean(True)
    assert "Return_Pump" not in snapshot
    with pytest.raises(TypeError):
        snapshot["Heater_Outlet"] = Boolean(False)


def test_as_dict_is_json_ready():
    state = ReefState()
    state.commit("Tank_Temperature", Number(78.5))

    view = state.as_dict()

    assert view["Tank_Temperature"]["kind"] == "number"
    assert view["Tank_Temperature"]["value"] == 78.5
    assert view["Tank_Temperature"]["text"] == "78.5"
    assert view["Tank_Temperature"]["committed_at"].endswith("+00:00")
    assert state.names() == ["Tank_Temperature"]
    assert len(state) == 1


def test_concurrent_commits_never_tear():
    state = ReefState()

    def writer(name):
        for i in range(500):
            state.commit(name, Number(i))

    threads = [threading.Thread(target=writer, args=(f"ch{i}",)) for i in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    snapshot = state.snapshot()
    assert {name: value.value for name, value in snapshot.items()} == {f"ch{i}": 499.0 for i in range(4)}
