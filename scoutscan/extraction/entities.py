"""
Entity extraction — candidate prospect names from raw text.

Two strategies:
  CSV   → if the text is a CSV export with a `name` column, read names (and
          snippet/content/comment/text + context columns) row by row.
  Text  → a name is any run of two or more consecutive capitalized tokens on
          one line. Punctuation ends a run. Coarse on purpose: scoring is the
          quality gate, not this layer.

Both return candidates deduplicated by exact name, in first-occurrence order.
"""
import csv
import io
import re
from dataclasses import dataclass
from typing import List

SNIPPET_MAX_CHARS = 200

# First letter A–Z, then letters; inner apostrophes/hyphens allowed (O'Neil, Jean-Luc).
_TOKEN = r"[A-Z][^\W\d_]*(?:['\-][^\W\d_]+)*"
NAME_PATTERN = re.compile(rf"(?<![\w'\-]){_TOKEN}(?:[ \t]+{_TOKEN})+(?![\w'\-])")

_SENTENCE_END = re.compile(r'[.!?\n]')

_SNIPPET_COLUMNS = ('snippet', 'content', 'comment', 'text')


@dataclass
class Candidate:
    """One extracted prospect name plus the text it came from."""
    name: str
    snippet: str
    offset: int = 0


def extract_names(text: str) -> List[str]:
    """Names only, unique, first-occurrence order."""
    return [c.name for c in extract_candidates(text)]


def extract_candidates(text: str) -> List[Candidate]:
    """Extract candidates, preferring CSV parsing when the text looks like a CSV export."""
    if not text or not text.strip():
        return []

    if looks_like_csv(text):
        candidates = parse_csv_candidates(text)
        if candidates:
            return candidates

    return extract_text_candidates(text)


def extract_text_candidates(text: str) -> List[Candidate]:
    """Capitalized-token heuristic over free text."""
    seen = set()
    candidates = []
    for match in NAME_PATTERN.finditer(text):
        name = match.group(0)
        if name in seen:
            continue
        seen.add(name)
        candidates.append(Candidate(
            name=name,
            snippet=sentence_around(text, match.start(), match.end()),
            offset=match.start(),
        ))
    return candidates


def sentence_around(text: str, start: int, end: int) -> str:
    """The sentence (or line) containing text[start:end], trimmed to SNIPPET_MAX_CHARS."""
    left = start
    while left > 0 and not _SENTENCE_END.match(text[left - 1]):
        left -= 1

    m = _SENTENCE_END.search(text, end)
    right = m.end() if m else len(text)

    sentence = ' '.join(text[left:right].split())
    if len(sentence) > SNIPPET_MAX_CHARS:
        sentence = sentence[:SNIPPET_MAX_CHARS].rstrip()
    return sentence


# ── CSV ──────────────────────────────────────────────────────────────────────

def looks_like_csv(text: str) -> bool:
    """Header row has commas and either a `name` column or 3+ columns, with at least one data row."""
    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        return False
    header = lines[0].lower()
    if ',' not in header:
        return False
    columns = [c.strip().strip('"') for c in header.split(',')]
    return any('name' in c for c in columns) or len(columns) > 2


def parse_csv_candidates(text: str) -> List[Candidate]:
    """Read candidates from a CSV export. Returns [] when no `name` column exists."""
    reader = csv.reader(io.StringIO(text.strip()), skipinitialspace=True)
    rows = [row for row in reader if any(cell.strip() for cell in row)]
    if len(rows) < 2:
        return []

    headers = [h.strip().lower() for h in rows[0]]
    name_idx = _find_column(headers, ('name',))
    if name_idx is None:
        return []
    snippet_idx = _find_column(headers, _SNIPPET_COLUMNS, exclude=('context', 'name'))
    context_idx = _find_column(headers, ('context',))

    seen = set()
    candidates = []
    for line_no, row in enumerate(rows[1:], start=1):
        name = _cell(row, name_idx)
        if len(name) <= 2 or name in seen:
            continue
        seen.add(name)

        snippet = _cell(row, snippet_idx)
        context = _cell(row, context_idx)
        if context:
            snippet = f"{snippet} {context}".strip()

        candidates.append(Candidate(
            name=name,
            snippet=(snippet or f"Prospect from CSV: {name}")[:SNIPPET_MAX_CHARS],
            offset=line_no,
        ))
    return candidates


def _find_column(headers, needles, exclude=()):
    for idx, header in enumerate(headers):
        if any(word in header for word in exclude):
            continue
        if any(needle in header for needle in needles):
            return idx
    return None


def _cell(row, idx) -> str:
    if idx is None or idx >= len(row):
        return ''
    return row[idx].strip().strip('"').strip()
