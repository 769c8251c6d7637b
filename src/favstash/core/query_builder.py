"""WHERE-clause composition for favorites listings.

The fragment and parameter list produced here are shared by the count query
and the page query, so both select the same row set.
"""

from typing import List, Tuple

from ..models.favorite import FavoriteFilters

LIKE_ESCAPE = "\\"


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def build_predicate(filters: FavoriteFilters, alias: str = "f") -> Tuple[str, List[object]]:
    """Translate filters into a WHERE fragment and bind parameters.

    Conditions are ANDed in a fixed order (search, category, tag id, tag
    name) so parameter order is deterministic. Tag filters parse the stored
    JSON array with ``json_each`` and compare whole elements.

    Args:
        filters: Active filters; unset or empty fields are skipped
        alias: Table alias of ``favorites`` in the surrounding query

    Returns:
        ``(" WHERE ...", params)``, or ``("", [])`` when no filter is active
    """
    clauses: List[str] = []
    params: List[object] = []
    # Only JSON arrays are searched, matching decode_tags; malformed JSON and
    # scalars never match. json_type errors on malformed JSON, so check first.
    tags_json = (
        f"CASE WHEN NOT json_valid({alias}.tags) THEN '[]' "
        f"WHEN json_type({alias}.tags) = 'array' THEN {alias}.tags ELSE '[]' END"
    )

    if filters.search:
        clauses.append(f"{alias}.text LIKE ? ESCAPE '{LIKE_ESCAPE}'")
        params.append(f"%{escape_like(filters.search)}%")

    if filters.category_id is not None:
        clauses.append(f"{alias}.category_id = ?")
        params.append(filters.category_id)

    if filters.tag_id is not None:
        clauses.append(
            f"EXISTS (SELECT 1 FROM json_each({tags_json}) jt "
            "WHERE jt.value = (SELECT name FROM tags WHERE id = ?))"
        )
        params.append(filters.tag_id)

    if filters.tag:
        clauses.append(
            f"EXISTS (SELECT 1 FROM json_each({tags_json}) jt WHERE jt.value = ?)"
        )
        params.append(filters.tag)

    where_sql = " WHERE " + " AND ".join(clauses) if clauses else ""
    return where_sql, params
