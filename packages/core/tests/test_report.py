"""Tests for walking the index and rendering it into the build log."""

import pytest

from buildlens_core.index import build_index
from buildlens_core.models import ChangedFile, InspectionRecord, InspectionStatistics, InspectionType
from buildlens_core.report import (
    BuildLogSectionWriter,
    SectionKind,
    SectionVisitor,
    finding_status,
    format_finding,
    render_index,
    walk_index,
)
from buildlens_log.memory import MemoryBuildLog
from buildlens_log.models import EntryKind, Status


def make_record(inspection_id=7, line=10, severity=4, message="unused import"):
    return InspectionRecord(
        line=line,
        message=message,
        repeat_count=1,
        severity=severity,
        inspection_id=inspection_id,
    )


class StubInspectionInfo:
    def __init__(self, types, details):
        self._types = types
        self._details = details

    def statistics(self):
        return InspectionStatistics()

    def inspection_types(self):
        return self._types

    def details(self, inspection_id, file_name):
        return self._details.get((inspection_id, file_name), [])


class RecordingVisitor(SectionVisitor):
    def __init__(self, fail_on_write=False):
        self.events = []
        self.fail_on_write = fail_on_write

    def open_section(self, name, kind):
        self.events.append(("open", name, kind))

    def write(self, record):
        if self.fail_on_write:
            raise RuntimeError("sink broke")
        self.events.append(("write", record.line))

    def close_section(self, name, kind):
        self.events.append(("close", name, kind))


def _index(types, details, files=("Foo.java",)):
    return build_index(StubInspectionInfo(types, details), [ChangedFile(f) for f in files])


class TestFormatting:
    def test_format_finding(self):
        assert format_finding(make_record()) == "unused import On line: 10 with severity: 4"

    @pytest.mark.parametrize("severity, expected", [(0, Status.WARNING), (2, Status.WARNING), (3, Status.NORMAL), (5, Status.NORMAL)])
    def test_warning_iff_severity_below_three(self, severity, expected):
        assert finding_status(make_record(severity=severity)) == expected


class TestWalkIndex:
    def test_nested_open_write_close_order(self):
        index = _index([InspectionType(7, "UnusedImport", 2)], {(7, "Foo.java"): [make_record()]})
        visitor = RecordingVisitor()
        walk_index(index, visitor)
        assert visitor.events == [
            ("open", "Foo.java", SectionKind.FILE),
            ("open", "UnusedImport", SectionKind.INSPECTION),
            ("write", 10),
            ("close", "UnusedImport", SectionKind.INSPECTION),
            ("close", "Foo.java", SectionKind.FILE),
        ]

    def test_empty_pairs_open_no_inspection_section(self):
        index = _index(
            [InspectionType(7, "UnusedImport", 2), InspectionType(8, "Naming", 1)],
            {(8, "Foo.java"): [make_record(inspection_id=8)]},
        )
        visitor = RecordingVisitor()
        walk_index(index, visitor)
        opened = [e[1] for e in visitor.events if e[0] == "open"]
        assert opened == ["Foo.java", "Naming"]

    def test_file_section_opened_even_without_findings(self):
        index = _index([InspectionType(7, "UnusedImport", 2)], {})
        visitor = RecordingVisitor()
        walk_index(index, visitor)
        assert visitor.events == [("open", "Foo.java", SectionKind.FILE), ("close", "Foo.java", SectionKind.FILE)]

    def test_negative_count_type_never_rendered(self):
        index = _index(
            [InspectionType(7, "UnusedImport", -1)],
            {(7, "Foo.java"): [make_record()]},
        )
        visitor = RecordingVisitor()
        walk_index(index, visitor)
        assert not any(e[1] == "UnusedImport" for e in visitor.events if e[0] == "open")
        assert not any(e[0] == "write" for e in visitor.events)

    def test_sections_closed_when_visitor_fails(self):
        index = _index([InspectionType(7, "UnusedImport", 2)], {(7, "Foo.java"): [make_record()]})
        visitor = RecordingVisitor(fail_on_write=True)
        with pytest.raises(RuntimeError):
            walk_index(index, visitor)
        assert [e[0] for e in visitor.events] == ["open", "open", "close", "close"]


class TestRenderIndex:
    def test_blocks_balanced_in_stack_order(self):
        index = _index(
            [InspectionType(7, "UnusedImport", 2), InspectionType(8, "Naming", 1)],
            {
                (7, "Foo.java"): [make_record()],
                (8, "Foo.java"): [make_record(inspection_id=8, line=3)],
                (8, "Bar.java"): [make_record(inspection_id=8, line=4)],
            },
            files=("Foo.java", "Bar.java"),
        )
        log = MemoryBuildLog()
        render_index(index, log)

        stack = []
        for entry in log.entries:
            if entry.kind == EntryKind.BLOCK_OPEN:
                stack.append(entry.flow_id)
            elif entry.kind == EntryKind.BLOCK_CLOSE:
                assert stack.pop() == entry.flow_id
        assert stack == []
        assert log.open_blocks == ()

    def test_messages_and_levels(self):
        index = _index(
            [InspectionType(7, "UnusedImport", 2)],
            {(7, "Foo.java"): [make_record(), make_record(line=12, severity=1, message="null dereference")]},
        )
        log = MemoryBuildLog()
        render_index(index, log)

        messages = [(e.text, e.status) for e in log.messages()]
        assert messages == [
            ("Discovered Inspections:", Status.NORMAL),
            ("unused import On line: 10 with severity: 4", Status.NORMAL),
            ("null dereference On line: 12 with severity: 1", Status.WARNING),
        ]

    def test_findings_written_inside_inspection_block(self):
        index = _index([InspectionType(7, "UnusedImport", 2)], {(7, "Foo.java"): [make_record()]})
        log = MemoryBuildLog()
        render_index(index, log)

        opens = [e for e in log.entries if e.kind == EntryKind.BLOCK_OPEN]
        assert [e.text for e in opens] == ["Foo.java", "UnusedImport"]
        assert opens[0].block_type.endswith("_file")
        assert opens[1].block_type.endswith("_file_inspection")
        finding = log.messages()[-1]
        assert finding.flow_id == opens[1].flow_id
        assert finding.depth == 2

    def test_writer_close_uses_opened_flow_id(self):
        log = MemoryBuildLog()
        writer = BuildLogSectionWriter(log, block_type="t")
        writer.open_section("Foo.java", SectionKind.FILE)
        writer.close_section("Foo.java", SectionKind.FILE)
        assert log.open_blocks == ()
