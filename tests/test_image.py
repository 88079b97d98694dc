"""Tests for asset discovery, path rendering and enrichment."""

import copy

import pytest

from Services.errors import AssetCountMismatch, MissingAssetMapping
from Services.image import (
    PathPolicy,
    build_image_nodes,
    enrich_metadata_with_images,
    enrich_nodes_with_images,
    find_image_assets,
    get_image_node_info,
    render_image_path,
    sanitize_file_name,
)

GLOBAL_VARS = {
    "styles": {
        "fill_IMG": [{"type": "IMAGE", "imageRef": "ref1", "scaleMode": "FILL", "isBackground": False}],
        "fill_CROP": [
            "#FFFFFF",
            {"type": "IMAGE", "imageRef": "ref2", "scaleMode": "CROP", "needsCropping": True, "cropTransform": [[1, 0, 0], [0, 1, 0]]},
        ],
        "fill_SOLID": ["#000000"],
    }
}


def _tree():
    return [
        {
            "id": "1",
            "name": "Root",
            "type": "FRAME",
            "fills": "fill_SOLID",
            "children": [
                {"id": "2", "name": "Logo", "type": "IMAGE-SVG"},
                {
                    "id": "3",
                    "name": "Card",
                    "type": "FRAME",
                    "children": [{"id": "4", "name": "Photo", "type": "RECTANGLE", "fills": "fill_CROP"}],
                },
                {"id": "5", "name": "Banner Image!", "type": "RECTANGLE", "fills": "fill_IMG"},
            ],
        }
    ]


def _result(path, width=10, height=20, cropped=False):
    return {"filePath": path, "finalDimensions": {"width": width, "height": height}, "wasCropped": cropped}


class TestFindImageAssets:
    def test_preorder_document_order(self) -> None:
        assets = find_image_assets(_tree(), GLOBAL_VARS)
        assert [a["id"] for a in assets] == ["2", "4", "5"]

    def test_solid_fills_are_not_assets(self) -> None:
        assets = find_image_assets(_tree(), GLOBAL_VARS)
        assert "1" not in [a["id"] for a in assets]

    def test_unknown_fill_reference(self) -> None:
        nodes = [{"id": "1", "name": "x", "type": "RECTANGLE", "fills": "fill_MISSING"}]
        assert find_image_assets(nodes, GLOBAL_VARS) == []


def test_sanitize_file_name() -> None:
    assert sanitize_file_name("Banner Image!") == "banner-image"
    assert sanitize_file_name("--Icon / Arrow  Left--") == "icon-arrow-left"


def test_build_image_nodes() -> None:
    assets = find_image_assets(_tree(), GLOBAL_VARS)
    requests = build_image_nodes(assets, "png")
    assert requests[0] == {"nodeId": "2", "fileName": "logo.png"}
    assert requests[1]["imageRef"] == "ref2"
    assert requests[1]["needsCropping"] is True
    assert requests[2] == {"nodeId": "5", "fileName": "banner-image.png", "imageRef": "ref1"}


def test_non_png_requests_render_fill_nodes() -> None:
    """Image fills are rendered too when the format is not png."""
    assets = find_image_assets(_tree(), GLOBAL_VARS)
    requests = build_image_nodes(assets, "svg")
    assert requests == [
        {"nodeId": "2", "fileName": "logo.svg"},
        {"nodeId": "4", "fileName": "photo.svg"},
        {"nodeId": "5", "fileName": "banner-image.svg"},
    ]


def test_colliding_names_are_not_deduplicated() -> None:
    assets = [{"id": "1", "name": "Icon"}, {"id": "2", "name": "icon"}]
    names = [n["fileName"] for n in build_image_nodes(assets, "svg")]
    assert names == ["icon.svg", "icon.svg"]


class TestPathPolicy:
    def test_filename_only(self) -> None:
        assert render_image_path("/a/b/c.png", PathPolicy.filename_only()) == "./c.png"
        assert render_image_path("C:\\imgs\\c.png", PathPolicy.filename_only()) == "./c.png"

    def test_absolute(self) -> None:
        assert render_image_path("/a/b/c.png", PathPolicy.absolute()) == "/a/b/c.png"

    def test_strip_prefix(self) -> None:
        policy = PathPolicy.strip_prefix("/var/www")
        assert render_image_path("/var/www/images/x.png", policy) == "./images/x.png"

    def test_strip_prefix_falls_back_to_filename(self) -> None:
        assert render_image_path("/tmp/x.png", PathPolicy.strip_prefix("/var/www")) == "./x.png"

    def test_strip_prefix_normalizes_separators(self) -> None:
        policy = PathPolicy.strip_prefix("C:\\site\\")
        assert render_image_path("C:\\site\\img\\x.png", policy) == "./img/x.png"

    def test_coerce(self) -> None:
        assert PathPolicy.coerce(True) == PathPolicy.filename_only()
        assert PathPolicy.coerce(None) == PathPolicy.filename_only()
        assert PathPolicy.coerce(False) == PathPolicy.absolute()
        assert PathPolicy.coerce("") == PathPolicy.filename_only()
        assert PathPolicy.coerce("/var/www") == PathPolicy.strip_prefix("/var/www")
        with pytest.raises(ValueError):
            PathPolicy("relative")


class TestEnrichNodes:
    def test_attaches_presentation_bundle(self) -> None:
        tree = _tree()
        assets = find_image_assets(tree, GLOBAL_VARS)
        results = [_result("/out/logo.svg"), _result("/out/photo.png", 300, 200, True), _result("/out/banner.png")]

        enriched = enrich_nodes_with_images(tree, assets, results)
        photo = enriched[0]["children"][1]["children"][0]["downloadedImage"]

        assert photo == {
            "filePath": "/out/photo.png",
            "relativePath": "./photo.png",
            "dimensions": {"width": 300, "height": 200},
            "wasCropped": True,
            "markdown": "![Photo](./photo.png)",
            "html": '<img src="./photo.png" alt="Photo" width="300" height="200">',
        }
        assert "downloadedImage" not in enriched[0]

    def test_input_tree_is_not_mutated(self) -> None:
        tree = _tree()
        original = copy.deepcopy(tree)
        assets = find_image_assets(tree, GLOBAL_VARS)
        results = [_result(f"/out/{i}.png") for i in range(3)]

        enriched = enrich_nodes_with_images(tree, assets, results, PathPolicy.absolute())
        assert tree == original
        assert enriched[0]["children"][0]["downloadedImage"]["relativePath"] == "/out/0.png"
        assert results[0]["finalDimensions"] is not enriched[0]["children"][0]["downloadedImage"]["dimensions"]

    def test_buffer_results_attach_nothing(self) -> None:
        tree = _tree()
        assets = find_image_assets(tree, GLOBAL_VARS)
        results = [{"buffer": b"x", "finalDimensions": {"width": 1, "height": 1}, "wasCropped": False}] * 3
        assert enrich_nodes_with_images(tree, assets, results) == tree

    def test_result_count_must_match(self) -> None:
        tree = _tree()
        assets = find_image_assets(tree, GLOBAL_VARS)
        with pytest.raises(AssetCountMismatch):
            enrich_nodes_with_images(tree, assets, [_result("/a.png")])


class TestEnrichMetadata:
    def _metadata(self):
        return {
            "metadata": {"name": "Doc"},
            "nodes": _tree(),
            "globalVars": GLOBAL_VARS,
            "images": [
                {"nodeId": "2", "finalDimensions": {"width": 16, "height": 16}, "wasCropped": False},
                {"nodeId": "4", "finalDimensions": {"width": 300, "height": 200}, "wasCropped": True},
                {"nodeId": "5", "finalDimensions": {"width": 800, "height": 100}, "wasCropped": False},
            ],
        }

    def test_positional_paths(self) -> None:
        enriched = enrich_metadata_with_images(self._metadata(), ["/s/a.svg", "/s/b.png", "/s/c.png"])
        banner = enriched["nodes"][0]["children"][2]["downloadedImage"]
        assert banner["relativePath"] == "./c.png"
        assert banner["dimensions"] == {"width": 800, "height": 100}

    def test_positional_length_mismatch(self) -> None:
        metadata = self._metadata()
        with pytest.raises(AssetCountMismatch) as exc:
            enrich_metadata_with_images(metadata, ["/s/a.svg", "/s/b.png"])
        assert exc.value.expected == 3
        assert exc.value.actual == 2

    def test_keyed_urls(self) -> None:
        urls = {
            "5": "https://cdn.example.com/banner.png",
            "2": "https://cdn.example.com/logo.svg",
            "4": "https://cdn.example.com/photo.png",
        }
        enriched = enrich_metadata_with_images(self._metadata(), urls, PathPolicy.absolute())
        photo = enriched["nodes"][0]["children"][1]["children"][0]["downloadedImage"]
        assert photo["filePath"] == "https://cdn.example.com/photo.png"
        assert photo["html"] == '<img src="https://cdn.example.com/photo.png" alt="Photo" width="300" height="200">'
        assert photo["wasCropped"] is True

    def test_keyed_missing_id(self) -> None:
        with pytest.raises(MissingAssetMapping, match="4"):
            enrich_metadata_with_images(self._metadata(), {"2": "/a.svg", "5": "/c.png"})

    def test_image_node_info(self) -> None:
        assert get_image_node_info(self._metadata()) == [
            {"nodeId": "2", "name": "Logo"},
            {"nodeId": "4", "name": "Photo"},
            {"nodeId": "5", "name": "Banner Image!"},
        ]
        assert get_image_node_info({"nodes": _tree(), "globalVars": GLOBAL_VARS}) == []
