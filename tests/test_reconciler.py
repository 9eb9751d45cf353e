# FILE: tests/test_reconciler.py
"""
Tests for architect/projects/reconciler.py

Round-trip fidelity, idempotence, and tolerance of broken entries.
"""

import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import json

import pytest

from architect.errors import RemoteStoreError
from architect.projects.models import to_epoch_ms
from architect.projects.reconciler import Reconciler
from architect.projects.repository import ProjectRepository
from architect.storage.memory_store import InMemoryFileStore
from architect.versions.ledger import VersionLedger
from architect.versions.models import ComponentSpec, DiagramKind, VersionStatus


@pytest.fixture
def repository(host):
    return ProjectRepository(host)


@pytest.fixture
async def project(repository):
    return await repository.create_project("Shop", "demo")


@pytest.fixture
def store(host, project):
    return host.open_store(project.location)


async def _save_history(repository, project, diagrams, count=2):
    """Save `count` complete versions and return them."""
    ledger = VersionLedger()
    saved = []
    for n in range(count):
        version = ledger.create_version(diagrams)
        for status in (VersionStatus.REFINING, VersionStatus.SPECIFYING):
            ledger.update_version(version.id, status=status)
        version = ledger.update_version(
            version.id,
            status=VersionStatus.COMPLETE,
            refined_image=f"refined-{n}".encode(),
            specs=[
                ComponentSpec(id=f"c{n}-1", name="API", description="Routes", user_notes="Use FastAPI"),
                ComponentSpec(id=f"c{n}-2", name="DB", description="Stores"),
            ],
            build_plan=f"# Plan {n}",
        )
        report = await repository.save_version(project, version)
        assert report.success
        saved.append(version)
    return saved


class TestRoundTrip:
    async def test_save_then_load_preserves_everything(self, repository, project, store, diagrams):
        saved = await _save_history(repository, project, diagrams, count=1)
        ledger = await Reconciler().load_versions(store)
        original, loaded = saved[0], ledger.get_version(saved[0].id)

        assert loaded.sequence_number == original.sequence_number
        assert loaded.status == VersionStatus.COMPLETE
        assert loaded.specs == original.specs
        assert loaded.build_plan == original.build_plan
        assert loaded.refined_image == original.refined_image
        assert [d.image for d in loaded.diagrams] == [d.image for d in original.diagrams]
        assert [(d.id, d.name, d.kind) for d in loaded.diagrams] == [(d.id, d.name, d.kind) for d in original.diagrams]
        assert to_epoch_ms(loaded.created_at) == to_epoch_ms(original.created_at)

    async def test_two_loads_are_identical(self, repository, project, store, diagrams):
        await _save_history(repository, project, diagrams, count=3)
        first = await Reconciler().load_versions(store)
        second = await Reconciler().load_versions(store)
        assert first.versions == second.versions

    async def test_sorted_by_sequence_number(self, repository, project, store, diagrams):
        saved = await _save_history(repository, project, diagrams, count=3)
        # Directory names sort independently of sequence numbers
        for version in saved:
            path = f"versions/{version.id}/version.json"
            store.files[f"versions/zz-{version.sequence_number}-{version.id}/version.json"] = store.files.pop(path)
        store.files = dict(reversed(list(store.files.items())))

        ledger = await Reconciler().load_versions(store)
        assert [v.sequence_number for v in ledger] == [1, 2, 3]

    async def test_seeded_ledger_continues_numbering(self, repository, project, store, diagrams):
        await _save_history(repository, project, diagrams, count=2)
        ledger = await Reconciler().load_versions(store)
        assert ledger.create_version(diagrams).sequence_number == 3


class TestTolerance:
    """Per-entry failures never prevent loading the rest."""

    async def test_missing_metadata_skipped(self, repository, project, store, diagrams):
        saved = await _save_history(repository, project, diagrams, count=2)
        del store.files[f"versions/{saved[0].id}/version.json"]

        ledger = await Reconciler().load_versions(store)
        assert [v.id for v in ledger] == [saved[1].id]

    async def test_malformed_json_skipped(self, repository, project, store, diagrams):
        saved = await _save_history(repository, project, diagrams, count=2)
        store.files[f"versions/{saved[1].id}/version.json"] = b"{\"id\": "

        ledger = await Reconciler().load_versions(store)
        assert [v.id for v in ledger] == [saved[0].id]

    async def test_schema_violation_skipped(self, store):
        store.files["versions/v-bad/version.json"] = json.dumps({"id": "v-bad", "status": "complete"}).encode()
        ledger = await Reconciler().load_versions(store)
        assert len(ledger) == 0

    async def test_out_of_range_timestamp_skipped(self, store):
        """A timestamp no datetime can hold skips that entry only."""
        store.files["versions/v-good/version.json"] = json.dumps({
            "id": "v-good", "versionNumber": 1, "timestamp": 1700000000000, "status": "complete",
        }).encode()
        store.files["versions/v-bad/version.json"] = json.dumps({
            "id": "v-bad", "versionNumber": 2, "timestamp": 10**20, "status": "complete",
        }).encode()
        ledger = await Reconciler().load_versions(store)
        assert [v.id for v in ledger] == ["v-good"]

    async def test_unreadable_entry_skipped(self, repository, project, store, diagrams):
        saved = await _save_history(repository, project, diagrams, count=2)
        store.fail_on(f"versions/{saved[0].id}/version.json", RemoteStoreError("502 Bad Gateway"))

        ledger = await Reconciler().load_versions(store)
        assert [v.id for v in ledger] == [saved[1].id]

    async def test_missing_diagram_degrades(self, repository, project, store, diagrams):
        saved = await _save_history(repository, project, diagrams, count=1)
        del store.files[f"versions/{saved[0].id}/diagrams/diagram-sub.png"]
        del store.files[f"versions/{saved[0].id}/refined/refined.png"]

        loaded = (await Reconciler().load_versions(store)).get_version(saved[0].id)
        assert loaded.diagrams[0].image is not None
        assert loaded.diagrams[1].image is None
        assert loaded.refined_image is None
        assert loaded.status == VersionStatus.COMPLETE

    async def test_orphan_payloads_invisible(self, store):
        """Files without version.json (interrupted save) do not create versions."""
        store.files["versions/v-orphan/diagrams/d.png"] = b"png"
        store.files["versions/v-orphan/refined/refined.png"] = b"png"
        assert len(await Reconciler().load_versions(store)) == 0

    async def test_file_entries_ignored(self, store):
        store.files["versions/README.md"] = b"notes"
        assert len(await Reconciler().load_versions(store)) == 0

    async def test_no_versions_directory(self):
        assert len(await Reconciler().load_versions(InMemoryFileStore())) == 0


class TestRecordCompatibility:
    """Records written by older clients."""

    async def test_legacy_record_infers_diagram_names(self, store):
        store.files["versions/v-1/version.json"] = json.dumps({
            "id": "v-1",
            "versionNumber": 1,
            "timestamp": 1700000000000,
            "status": "complete",
            "diagramFiles": ["d-main.png", "d-two.png"],
            "refinedFile": None,
            "specs": [{"id": "comp-0-1", "name": "API", "description": "Routes", "userNotes": ""}],
        }).encode()
        store.files["versions/v-1/diagrams/d-main.png"] = b"main"
        store.files["versions/v-1/diagrams/d-two.png"] = b"two"

        version = (await Reconciler().load_versions(store)).get_version("v-1")
        assert [(d.id, d.name, d.kind) for d in version.diagrams] == [
            ("d-main", "Main Architecture", DiagramKind.PRIMARY),
            ("d-two", "Sub-Diagram 1", DiagramKind.AUXILIARY),
        ]
        assert version.build_plan is None
        assert version.specs[0].name == "API"

    async def test_in_flight_status_becomes_error(self, store):
        store.files["versions/v-1/version.json"] = json.dumps({
            "id": "v-1", "versionNumber": 1, "timestamp": 1700000000000, "status": "refining",
        }).encode()
        version = (await Reconciler().load_versions(store)).get_version("v-1")
        assert version.status == VersionStatus.ERROR
        assert "interrupted" in version.error
        assert version.is_terminal

    async def test_unknown_keys_ignored(self, store):
        store.files["versions/v-1/version.json"] = json.dumps({
            "id": "v-1", "versionNumber": 1, "timestamp": 1700000000000,
            "status": "error", "error": "quota", "futureField": {"x": 1},
        }).encode()
        version = (await Reconciler().load_versions(store)).get_version("v-1")
        assert version.error == "quota"
