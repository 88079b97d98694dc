from Services.node_walker import extract_from_design
from Services.style_parser import is_visible
from Services.style_registry import StyleRegistry


def simplify_components(components: dict) -> dict:
    return {
        component_id: {
            "id": component_id,
            "key": comp.get("key"),
            "name": comp.get("name"),
            "componentSetId": comp.get("componentSetId"),
        }
        for component_id, comp in components.items()
        if isinstance(comp, dict)
    }


def simplify_component_sets(component_sets: dict) -> dict:
    return {
        set_id: {
            "id": set_id,
            "key": comp_set.get("key"),
            "name": comp_set.get("name"),
            "description": comp_set.get("description"),
        }
        for set_id, comp_set in component_sets.items()
        if isinstance(comp_set, dict)
    }


def parse_api_response(data: dict) -> dict:
    """
    Merge a GET /files or GET /files/:key/nodes response into one node list.

    Side tables from several node responses are merged, later ones winning.
    Only the top-level nodes are filtered for visibility.
    """
    components = {}
    component_sets = {}
    extra_styles = {}

    if "nodes" in data:
        node_responses = [r for r in (data.get("nodes") or {}).values() if r]
        for node_response in node_responses:
            components.update(node_response.get("components") or {})
            component_sets.update(node_response.get("componentSets") or {})
            extra_styles.update(node_response.get("styles") or {})
        raw_nodes = [
            r["document"]
            for r in node_responses
            if isinstance(r.get("document"), dict) and is_visible(r["document"])
        ]
    else:
        components.update(data.get("components") or {})
        component_sets.update(data.get("componentSets") or {})
        extra_styles.update(data.get("styles") or {})
        document = data.get("document") or {}
        raw_nodes = [
            child
            for child in document.get("children") or []
            if isinstance(child, dict) and is_visible(child)
        ]

    return {
        "name": data.get("name"),
        "raw_nodes": raw_nodes,
        "components": components,
        "component_sets": component_sets,
        "extra_styles": extra_styles,
    }


def simplify_raw_figma_object(data: dict, extractors, max_depth=None, after_children=None) -> dict:
    parsed = parse_api_response(data)

    registry = StyleRegistry(extra_styles=parsed["extra_styles"])
    nodes, registry = extract_from_design(
        parsed["raw_nodes"],
        extractors,
        max_depth=max_depth,
        after_children=after_children,
        registry=registry,
    )

    return {
        "name": parsed["name"],
        "nodes": nodes,
        "components": simplify_components(parsed["components"]),
        "componentSets": simplify_component_sets(parsed["component_sets"]),
        "globalVars": registry.to_global_vars(),
    }
