# tests/dataloader/test_converters.py
import pytest

from allocprep.dataloader.converters import (
    CLIENT_ALIASES,
    WORKER_ALIASES,
    convert_clients,
    convert_tasks,
    convert_workers,
    remap_headers,
)
from allocprep.schemas.models import Client, Task, Worker


@pytest.mark.parametrize(
    "header",
    ["ClientID", "Client ID", "client id", "client_id", "CLIENT-ID", " Client  Id "],
)
def test_remap_headers_matches_alias_variants(header):
    """
    @brief
    Header spelling variants resolve to the canonical column name.
    """
    assert remap_headers({header: "C1"}, CLIENT_ALIASES) == {"ClientID": "C1"}


def test_remap_headers_keeps_unknown_and_skips_overflow():
    row = {"WorkerID": "W1", "Notes": "x", None: ["extra"]}

    assert remap_headers(row, WORKER_ALIASES) == {"WorkerID": "W1", "Notes": "x"}


def test_convert_clients_parses_and_keeps_values():
    # --- Arrange ---
    rows = [
        {
            "Client ID": "C1",
            "Client Name": "Acme",
            "Priority Level": "4",
            "Requested Task IDs": "T1,T2",
            "Group Tag": "vip",
            "Attributes JSON": '{"a": 1}',
        }
    ]

    # --- Act ---
    result = convert_clients(rows)

    # --- Assert ---
    assert result.notes == []
    assert result.entities == [
        Client(
            client_id="C1",
            client_name="Acme",
            priority_level=4,
            requested_task_ids="T1,T2",
            group_tag="vip",
            attributes_json='{"a": 1}',
        )
    ]


def test_missing_id_assigned_from_row_number():
    """
    @brief
    Blank ids become "<prefix><row>" and are noted.

    @details
    Row numbers are 1-based positions among data rows.
    """
    result = convert_workers([{"WorkerID": "W1"}, {"WorkerID": "  "}])

    assert [w.worker_id for w in result.entities] == ["W1", "W2"]
    id_notes = [n for n in result.notes if n["kind"] == "missing_id"]
    assert len(id_notes) == 1
    note = id_notes[0]
    assert note["kind"] == "missing_id"
    assert note["entity"] == "worker"
    assert note["row"] == 2
    assert note["field"] == "WorkerID"


def test_integer_columns_default_only_when_missing_or_unparseable():
    # --- Arrange ---
    rows = [
        {"TaskID": "T1", "Duration": "0", "MaxConcurrent": "-2"},
        {"TaskID": "T2", "Duration": "3.7", "MaxConcurrent": "abc"},
        {"TaskID": "T3", "Duration": ""},
    ]

    # --- Act ---
    result = convert_tasks(rows)

    # --- Assert ---
    t1, t2, t3 = result.entities
    assert (t1.duration, t1.max_concurrent) == (0, -2)
    assert (t2.duration, t2.max_concurrent) == (3, 1)
    assert (t3.duration, t3.max_concurrent) == (1, 1)
    assert [(n["row"], n["field"]) for n in result.notes] == [
        (2, "MaxConcurrent"),
        (3, "Duration"),
        (3, "MaxConcurrent"),
    ]
    assert all(n["kind"] == "defaulted_int" for n in result.notes)


def test_text_columns_fall_back_to_column_defaults():
    result = convert_workers([{"WorkerID": "W1", "AvailableSlots": "", "Skills": None}])

    w = result.entities[0]
    assert isinstance(w, Worker)
    assert w.available_slots == "[]"
    assert w.skills == ""
    assert w.max_load_per_phase == 1


def test_malformed_text_is_passed_through():
    """
    @brief
    Encoded fields are not checked here; the engine reports them.
    """
    result = convert_tasks([{"TaskID": "T1", "PreferredPhases": "phase one"}])

    assert isinstance(result.entities[0], Task)
    assert result.entities[0].preferred_phases == "phase one"
    assert all(n["field"] != "PreferredPhases" for n in result.notes)
