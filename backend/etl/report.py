"""
report.py — Import summary report for a project material list.
Row outcomes: matched (linked to a catalog material) or unmatched (needs review).
"""

import logging
from typing import Optional

from etl.match import MaterialMatcher
from etl.models import ImportSummary, MatchResult

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3


def generate_summary(results: list[MatchResult], summary: ImportSummary,
                     matcher: Optional[MaterialMatcher] = None) -> dict:
    """
    Produce a JSON-serializable report of one import.

    Returns:
        {
            'total': int, 'processed': int, 'matched': int, 'unmatched': int,
            'match_rate': float (percent, 1 decimal),
            'failed': bool,
            'errors': [str, ...],
            'message': str,
            'needs_review': [ { row with suggestions }, ... ],
        }
    """
    needs_review = []
    for result in results:
        if result.matched:
            continue
        row = result.row
        suggestions = []
        if matcher is not None:
            for cand in matcher.rank(row.name, row.manufacturer, limit=MAX_SUGGESTIONS):
                suggestions.append({
                    'material_id': cand.material.id,
                    'material_name': cand.material.name,
                    'manufacturer': cand.material.manufacturer,
                    'score': round(cand.score, 3),
                })
        needs_review.append({
            'row_number': row.row_number,
            'external_id': row.external_id,
            'input_name': row.name,
            'input_manufacturer': row.manufacturer,
            'suggestions': suggestions,
        })

    return {
        'total': summary.total,
        'processed': summary.processed,
        'matched': summary.matched,
        'unmatched': summary.unmatched,
        'match_rate': summary.match_rate,
        'failed': summary.failed,
        'errors': list(summary.errors),
        'message': review_message(summary),
        'needs_review': needs_review,
    }


def review_message(summary: ImportSummary) -> str:
    """One-line feedback for the user after an import."""
    if summary.failed:
        return summary.errors[0] if summary.errors else "Import failed"

    parts = [f"{summary.matched}/{summary.processed} materials matched ({summary.match_rate}%)"]
    if summary.unmatched:
        noun = 'row needs' if summary.unmatched == 1 else 'rows need'
        parts.append(f"{summary.unmatched} {noun} manual review")
    if summary.errors:
        noun = 'row was' if len(summary.errors) == 1 else 'rows were'
        parts.append(f"{len(summary.errors)} {noun} skipped")
    return ', '.join(parts)

