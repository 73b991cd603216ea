from pathlib import Path

import pytest

from collibra_export.domain.models import Community, Domain, ExportOptions
from collibra_export.pipeline.orchestrator import ExportOrchestrator, format_summary
from collibra_export.types import (
    CatalogNotFoundError,
    CatalogRequestError,
    ExportFailure,
    ExportSuccess,
    HierarchyCycleError,
)

FINANCE = Community(id="c1", name="Finance")
MARKETING = Community(id="c5", name="Marketing")
HR = Community(id="c6", name="HR")


class RecordingSink:
    def __init__(self):
        self.written = []

    def write(self, unit_name, hierarchy):
        self.written.append((unit_name, hierarchy))
        return Path(f"/exports/{unit_name}.json")


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def orchestrator(catalog, client, sink):
    return ExportOrchestrator(client, sink=sink)


def test_collect_walks_sub_communities_and_their_domains(orchestrator):
    hierarchy = orchestrator.collect(FINANCE, ExportOptions(include_attributes=False))

    assert [c.name for c in hierarchy.subcommunities] == ["Finance EMEA", "Finance UK", "Finance APAC"]
    assert [d.domain.name for d in hierarchy.domains] == ["Finance Glossary", "EMEA Reports", "UK Ledger"]
    assert [a.asset.name for a in hierarchy.domains[0].assets] == ["Revenue", "Margin"]
    assert hierarchy.domains[2].assets == []
    assert hierarchy.asset_count == 3


def test_collect_without_assets_never_lists_assets(orchestrator, catalog):
    hierarchy = orchestrator.collect(FINANCE, ExportOptions(include_assets=False, include_relations=True))

    assert all(d.assets is None for d in hierarchy.domains)
    assert not any(e.startswith("/assets") for e in catalog.endpoints_called())


def test_collect_uses_supplied_listing(orchestrator, catalog):
    orchestrator.collect(MARKETING, ExportOptions(include_assets=False), all_communities=[MARKETING])

    assert "/communities" not in catalog.endpoints_called()


def test_export_one_writes_through_sink(orchestrator, sink):
    ok, location = orchestrator.export_one(MARKETING, ExportOptions())

    assert ok is True
    assert location == Path("/exports/Marketing.json")
    assert sink.written[0][0] == "Marketing"
    assert sink.written[0][1].domains[0].assets[0].asset.name == "Spring Launch"


def test_batch_isolates_a_failing_unit(orchestrator, catalog, sink):
    catalog.fail_on("/assets", CatalogRequestError("/assets", "503 Service Unavailable", 503), domainId="d5")

    results = orchestrator.export_all([FINANCE, MARKETING, HR], ExportOptions())

    assert [type(r) for r in results] == [ExportSuccess, ExportFailure, ExportSuccess]
    assert [r.name for r in results] == ["Finance", "Marketing", "HR"]
    assert "503" in results[1].error
    assert [name for name, _ in sink.written] == ["Finance", "HR"]


def test_single_unit_export_propagates(orchestrator, catalog):
    catalog.fail_on("/assets", CatalogRequestError("/assets", "503 Service Unavailable", 503), domainId="d5")

    with pytest.raises(CatalogRequestError):
        orchestrator.export_one(MARKETING, ExportOptions())


def test_run_with_one_unit_propagates(orchestrator, catalog):
    catalog.fail_on("/domains", CatalogRequestError("/domains", "401 Unauthorized", 401))

    with pytest.raises(CatalogRequestError):
        orchestrator.run([HR], ExportOptions())


def test_run_with_many_units_returns_results_in_input_order(orchestrator):
    results = orchestrator.run([HR, MARKETING], ExportOptions(include_assets=False))

    assert [r.name for r in results] == ["HR", "Marketing"]
    assert all(r.succeeded for r in results)


def test_run_with_no_units(orchestrator, sink):
    assert orchestrator.run([], ExportOptions()) == []
    assert sink.written == []


def test_export_by_name_records_unmatched_name_in_place(orchestrator, catalog, sink):
    results = orchestrator.export_by_name(["Finance", "Marketing Ops", "HR"], ExportOptions(include_assets=False))

    assert [type(r) for r in results] == [ExportSuccess, ExportFailure, ExportSuccess]
    assert results[1].error == "No community named 'Marketing Ops' (exact match)"
    assert [name for name, _ in sink.written] == ["Finance", "HR"]
    assert [p["offset"] for e, p in catalog.calls if e == "/communities"] == [0, 2, 4, 6]


def test_export_by_name_single_unmatched_name_raises(orchestrator, sink):
    with pytest.raises(CatalogNotFoundError):
        orchestrator.export_by_name(["Fin"], ExportOptions())

    assert sink.written == []


def test_sink_failure_is_a_unit_failure(orchestrator, sink):
    def broken_write(unit_name, hierarchy):
        raise OSError("disk full")

    sink.write = broken_write

    results = orchestrator.export_all([HR, MARKETING], ExportOptions())

    assert [r.error for r in results] == ["disk full", "disk full"]


def test_cyclic_hierarchy_fails_only_that_unit(orchestrator, catalog):
    catalog.communities.append({"id": "c7", "name": "Loop", "parent": {"id": "c8"}})
    catalog.communities.append({"id": "c8", "name": "Loop Child", "parent": {"id": "c7"}})

    results = orchestrator.export_all(
        [Community(id="c7", name="Loop"), HR], ExportOptions(include_assets=False)
    )

    assert not results[0].succeeded
    assert "Loop" in results[0].error
    assert results[1].succeeded


def test_cycle_error_is_raised_for_single_unit(orchestrator, catalog):
    catalog.communities.append({"id": "c7", "name": "Loop", "parent": {"id": "c8"}})
    catalog.communities.append({"id": "c8", "name": "Loop Child", "parent": {"id": "c7"}})

    with pytest.raises(HierarchyCycleError):
        orchestrator.export_one(Community(id="c7", name="Loop"), ExportOptions())


def test_export_domain(orchestrator, sink):
    ok, _ = orchestrator.export_domain(Domain(id="d1", name="Finance Glossary"), ExportOptions())

    unit_name, hierarchy = sink.written[0]
    assert ok and unit_name == "Finance Glossary"
    assert [a.asset.id for a in hierarchy.assets] == ["a1", "a2"]


def test_default_sink_follows_options(catalog, client, tmp_path):
    orchestrator = ExportOrchestrator(client)

    _, location = orchestrator.export_one(HR, ExportOptions(output_dir=tmp_path, format="csv"))

    assert location.parent == tmp_path
    assert location.suffix == ".csv"


def test_format_summary():
    lines = format_summary([
        ExportSuccess(name="Finance"),
        ExportFailure(name="Marketing", error="HTTP 503"),
    ])

    assert lines == ["  ✓ Finance", "  ✗ Marketing", "    Error: HTTP 503"]
