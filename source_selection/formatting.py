"""
Synthesis formatter: renders selected sources as a citation-numbered prompt
block for the downstream language-model call.

Sources are grouped into provider sections shown in a fixed order, but the
``[n]`` markers are assigned once over the relevance-ordered input. A section
can therefore carry non-contiguous numbers, and the numbers the model echoes
back always point at the same source regardless of grouping.
"""

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .core.models import SelectedSource, SourceType

SECTION_ORDER: Tuple[SourceType, ...] = (
    SourceType.PUBMED,
    SourceType.ARXIV,
    SourceType.MEDRXIV,
    SourceType.CLINICAL_TRIALS,
    SourceType.EXA,
)

SECTION_TITLES: Dict[SourceType, str] = {
    SourceType.PUBMED: "Peer-Reviewed Articles (PubMed)",
    SourceType.ARXIV: "Recent Research (arXiv)",
    SourceType.MEDRXIV: "Medical Preprints (medRxiv)",
    SourceType.CLINICAL_TRIALS: "Clinical Trials",
    SourceType.EXA: "Web Sources",
}

DEFAULT_SUMMARY_CAP = 500

SUMMARY_CAPS: Dict[SourceType, int] = {
    SourceType.PUBMED: 500,
    SourceType.ARXIV: 500,
    SourceType.MEDRXIV: 500,
    SourceType.CLINICAL_TRIALS: 500,
    SourceType.EXA: 400,
}

ELLIPSIS = "..."


def _plural(count: int) -> str:
    return f"{count} source" if count == 1 else f"{count} sources"


def _fmt_score(score: float) -> str:
    return f"{score:g}"


def truncate_summary(text: str, cap: int) -> str:
    text = (text or "").strip()
    if len(text) <= cap:
        return text
    return text[:cap].rstrip() + ELLIPSIS


def _render_entry(number: int, source: SelectedSource, cap: int) -> str:
    badge = source.credibility_badge.value
    lines = [
        f"### [{number}] {source.citation}",
        f"Relevance: {_fmt_score(source.relevance_score)}/100 | Credibility: {badge}",
        "",
    ]
    summary = truncate_summary(source.summary, cap)
    if summary:
        lines.append(summary)
        lines.append("")
    return "\n".join(lines) + "\n"


def format_sources_for_synthesis(
    selected_sources: Sequence[SelectedSource],
    summary_caps: Optional[Mapping[SourceType, int]] = None,
) -> str:
    """
    Render the selection as a prompt fragment.

    Args:
        selected_sources: Final selection, in relevance order.
        summary_caps: Optional per-type character caps overriding SUMMARY_CAPS.

    Returns:
        Markdown-ish text with one section per represented source type and
        globally sequential ``[n]`` citation markers.
    """
    caps = dict(SUMMARY_CAPS)
    if summary_caps:
        caps.update({SourceType(k): v for k, v in summary_caps.items()})

    out = [f"# SELECTED RESEARCH SOURCES ({_plural(len(selected_sources))})\n\n"]
    if not selected_sources:
        out.append("No sources were selected for synthesis.\n")
        return "".join(out)

    numbered: Dict[SourceType, List[Tuple[int, SelectedSource]]] = {t: [] for t in SECTION_ORDER}
    for number, source in enumerate(selected_sources, start=1):
        numbered.setdefault(source.source_type, []).append((number, source))

    for source_type in SECTION_ORDER:
        entries = numbered[source_type]
        if not entries:
            continue
        out.append(f"## {SECTION_TITLES[source_type]} - {_plural(len(entries))}\n\n")
        cap = caps.get(source_type, DEFAULT_SUMMARY_CAP)
        for number, source in entries:
            out.append(_render_entry(number, source, cap))

    return "".join(out)
