import pytest

from tests.factories import frame, rect


@pytest.fixture
def file_response():
    """GET /files response: one page holding a card, an icon and an image."""
    red = {"r": 1, "g": 0, "b": 0, "a": 1}
    return {
        "name": "Landing",
        "document": {
            "id": "0:0",
            "name": "Document",
            "type": "DOCUMENT",
            "children": [
                {
                    "id": "1:1",
                    "name": "Page 1",
                    "type": "CANVAS",
                    "children": [
                        frame(
                            "2:1",
                            [
                                {
                                    "id": "3:1",
                                    "name": "Title",
                                    "type": "TEXT",
                                    "characters": "Hello",
                                    "style": {"fontFamily": "Inter", "fontWeight": 700, "fontSize": 24},
                                    "styles": {"text": "S:heading"},
                                },
                                frame("3:2", [rect("4:1"), rect("4:2", type="ELLIPSE")], name="Icon", node_type="GROUP"),
                                rect(
                                    "3:3",
                                    name="Hero Photo",
                                    fills=[{"type": "IMAGE", "imageRef": "abc123", "scaleMode": "FILL"}],
                                ),
                            ],
                            name="Card",
                            fills=[{"type": "SOLID", "color": red}],
                        ),
                    ],
                },
                {"id": "1:2", "name": "Hidden page", "type": "CANVAS", "visible": False, "children": []},
            ],
        },
        "components": {"10:1": {"key": "k1", "name": "Button", "componentSetId": "11:1"}},
        "componentSets": {"11:1": {"key": "ks", "name": "Buttons", "description": "All buttons"}},
        "styles": {"S:heading": {"name": "Heading/H1", "styleType": "TEXT"}},
    }
