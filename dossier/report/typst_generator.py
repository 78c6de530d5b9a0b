"""Typst generator: produces Typst source and PDF from a ReportDocument."""

from __future__ import annotations

import tempfile
from pathlib import Path

import typst

from dossier.models.evidence import Evidence, Extract
from dossier.models.project import SearchQuery, SearchRound
from dossier.models.report import ReportDocument
from dossier.models.source import Source

TEMPLATE_PATH = Path(__file__).resolve().parent / "templates" / "dossier.typ"
CONTENT_MARKER = "// DOSSIER:CONTENT"


class TypstGenerator:
    """Generates Typst source from a report document's ordered tree."""

    def __init__(self, template: str | None = None) -> None:
        if template is not None:
            self._template = template
        else:
            self._template = TEMPLATE_PATH.read_text()

    def generate(self, document: ReportDocument) -> str:
        """Produce a complete Typst document. Output order is the document's order."""
        project = document.project
        timespan = None
        if project.timespan_start or project.timespan_end:
            timespan = f"{project.timespan_start or '?'} to {project.timespan_end or '?'}"

        content_lines: list[str] = [
            "#project-header("
            f"title: {self._str(project.title)}, "
            f"question: {self._str(project.research_question)}, "
            f"hypothesis: {self._str(project.hypothesis)}, "
            f"timespan: {self._str(timespan)}, "
            f"status: {self._str(project.status.value)})",
            "",
        ]

        if document.rounds:
            content_lines.append("= Search rounds")
            content_lines.append("")
            for section in document.rounds:
                content_lines.append(self._render_round(section.round))
                for query in section.queries:
                    content_lines.append(self._render_query(query))
                content_lines.append("")

        if document.sources:
            content_lines.append("= Sources")
            content_lines.append("")
            for section in document.sources:
                content_lines.append(self._render_source(section.source))
                for evidence in section.evidence:
                    content_lines.append(self._render_evidence(evidence))
                for extract in section.extracts:
                    content_lines.append(self._render_extract(extract))
                content_lines.append("")

        content = "\n".join(content_lines)
        return self._template.replace(CONTENT_MARKER, content)

    def _render_round(self, search_round: SearchRound) -> str:
        return (
            f"#round-heading(label: {self._str(search_round.label)}, "
            f"objective: {self._str(search_round.objective)})"
        )

    def _render_query(self, query: SearchQuery) -> str:
        return (
            f"#query-entry(executed: {self._str(query.executed_at)}, "
            f"body: {self._str(query.query_text)}, "
            f"notes: {self._str(query.notes)})"
        )

    def _render_source(self, source: Source) -> str:
        meta = source.metadata
        return (
            "#source-heading("
            f"title: {self._str(meta.title)}, "
            f"url: {self._str(source.url)}, "
            f"kind: {self._str(source.source_type.value)}, "
            f"archived: {'true' if source.is_archived else 'false'}, "
            f"author: {self._str(meta.author)}, "
            f"publisher: {self._str(meta.publisher)}, "
            f"published: {self._str(meta.published_at)}, "
            f"summary: {self._str(meta.summary)})"
        )

    def _render_evidence(self, evidence: Evidence) -> str:
        return (
            "#evidence-box("
            f"kind: {self._str(evidence.evidence_type.value)}, "
            f"body: {self._str(evidence.evidence_text)}, "
            f"surrounding: {self._str(evidence.context_text)}, "
            f"location: {self._str(evidence.location_ref)}, "
            f"why: {self._str(evidence.why_relevant)}, "
            f"extract: {self._str(evidence.extract_id)})"
        )

    def _render_extract(self, extract: Extract) -> str:
        return (
            "#extract-entry("
            f"kind: {self._str(extract.extract_type.value)}, "
            f"body: {self._str(extract.extract_text)}, "
            f"surrounding: {self._str(extract.context_text)}, "
            f"location: {self._str(extract.location_ref)})"
        )

    def _str(self, value: str | None) -> str:
        """A Typst string literal, or ``none``."""
        if value is None:
            return "none"
        return f'"{self._escape(value)}"'

    def _escape(self, text: str) -> str:
        """Escape special Typst characters in text."""
        # Backslash first, then quotes and line breaks
        return (
            text.replace("\\", "\\\\")
            .replace('"', '\\"')
            .replace("\r", "")
            .replace("\n", "\\n")
        )


class TypstRenderer:
    """Compiles generated Typst source to PDF."""

    name = "typst"
    media_type = "application/pdf"

    def __init__(self, generator: TypstGenerator | None = None) -> None:
        self.generator = generator or TypstGenerator()

    def render(self, document: ReportDocument) -> bytes:
        source = self.generator.generate(document)
        with tempfile.TemporaryDirectory(prefix="dossier-") as workdir:
            main = Path(workdir) / "main.typ"
            main.write_text(source)
            return typst.compile(str(main))
