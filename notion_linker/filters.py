"""
Builders for Notion query filters and property values, plus readers for the
property shapes the linker cares about (relation, formula, title).

Every builder returns a new dict so filters are never shared between queries.
"""

from typing import Any, Dict, List, Optional


# ============================================================================
# FILTERS
# ============================================================================

def relation_is_empty(property_name: str) -> Dict[str, Any]:
    """Filter for pages whose relation property has no targets."""
    return {
        'property': property_name,
        'relation': {
            'is_empty': True,
        },
    }


def formula_string_equals(property_name: str, value: str) -> Dict[str, Any]:
    """Filter for pages whose string formula equals value exactly."""
    return {
        'property': property_name,
        'formula': {
            'string': {
                'equals': value,
            },
        },
    }


def title_equals(property_name: str, value: str) -> Dict[str, Any]:
    """Filter for pages whose title equals value exactly."""
    return {
        'property': property_name,
        'title': {
            'equals': value,
        },
    }


# ============================================================================
# PROPERTY VALUES
# ============================================================================

def relation_value(*page_ids: str) -> Dict[str, Any]:
    """Relation property assignment pointing at the given pages."""
    return {
        'type': 'relation',
        'relation': [{'id': page_id} for page_id in page_ids],
    }


def _get_property(page: Dict[str, Any], property_name: str) -> Dict[str, Any]:
    prop = (page.get('properties') or {}).get(property_name)
    return prop if isinstance(prop, dict) else {}


def get_relation_ids(page: Dict[str, Any], property_name: str) -> List[str]:
    """IDs a relation property points at ([] when empty or missing)."""
    relation = _get_property(page, property_name).get('relation') or []
    return [item['id'] for item in relation if isinstance(item, dict) and item.get('id')]


def get_formula_string(page: Dict[str, Any], property_name: str) -> Optional[str]:
    """
    Value of a string formula property.

    Returns None when the property is missing, is not a string formula, or
    has not been computed.
    """
    formula = _get_property(page, property_name).get('formula') or {}
    value = formula.get('string')
    return value if isinstance(value, str) else None


def get_title_text(page: Dict[str, Any], property_name: str) -> str:
    """Plain text of a title property, all rich text fragments joined."""
    fragments = _get_property(page, property_name).get('title') or []
    return ''.join(
        fragment.get('plain_text', '')
        for fragment in fragments
        if isinstance(fragment, dict)
    )
