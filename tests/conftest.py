# tests/conftest.py
# Shared pytest fixtures for RefHelper tests

import json

import pytest

from config import TestingConfig
from main_app import create_app
from refops import ParamSpec, TemplateContext, TemplateMetadata


@pytest.fixture
def simple_wikitext():
    return (
        "Text before."
        "<ref>Reference one</ref>"
        "Text after."
    )


@pytest.fixture
def multiline_ref_wikitext():
    return (
        "Intro.\n"
        "<ref>\n"
        "Line one\n"
        "Line two\n"
        "</ref>\n"
        "End."
    )


@pytest.fixture
def mixed_refs_wikitext():
    return (
        "A<ref>First</ref>"
        "B<ref name=\"x\" />"
        "C<ref>Third</ref>"
    )


@pytest.fixture
def darwin_wikitext():
    return '<ref name="a">Text {{Cite book|title=On the Origin of Species|first=Charles|last=Darwin}}</ref>'


@pytest.fixture
def complex_wikitext_with_refs():
    """Real-world WikiText with wikilinks, Arabic text, templates and citations."""
    return (
        "The Queensboro Bridge<ref name=\"nyt\">{{cite web |url=https://nytimes.com/1909 "
        "|title=Bridge opens |access-date=2020-01-01}}</ref> carries New York State "
        "Route 25 (NY 25). The bridge has two levels<ref name=\"levels\">Level details "
        "in {{Cite book|last=Smith|first=J.|title=[[جسر كوينزبورو|Queensboro]] history}}</ref>. "
        "The western leg is paralleled by the Roosevelt Island Tramway<ref name=\"nyt\" />. "
        "It connects Manhattan Island and [[لونغ آيلند]], along with the "
        "[[جسر ويليامزبرغ|Williamsburg]] bridge<ref>Southern bridges info</ref>"
        "<ref name=\"levels\"/>."
    )


@pytest.fixture
def cite_book_metadata():
    return TemplateMetadata(
        name="Cite book",
        params={
            "last": ParamSpec("last", aliases=["last1", "author"], label="Last name"),
            "first": ParamSpec("first", aliases=["first1"], label="First name"),
            "title": ParamSpec("title", label="Title", required=True),
            "year": ParamSpec("year", label="Year"),
        },
        param_order=["last", "first", "title", "year"],
        maps={"proveit": {"main": "title"}},
    )


@pytest.fixture
def cite_web_metadata():
    return TemplateMetadata(
        name="Cite web",
        params={
            "url": ParamSpec("url", label="URL", required=True),
            "title": ParamSpec("title", label="Title", required=True),
            "access-date": ParamSpec("access-date", aliases=["accessdate"], label="Access date"),
        },
        param_order=["url", "title", "access-date"],
        format="block",
        maps={"proveit": {"main": "title"}},
    )


@pytest.fixture
def context(cite_book_metadata, cite_web_metadata):
    """Cite book and Cite web, with "Web cite" redirecting to Cite web."""
    return TemplateContext(
        [cite_book_metadata, cite_web_metadata],
        redirects={"Web cite": "Cite web"},
    )


@pytest.fixture
def templatedata_response():
    """An action=templatedata response (formatversion=2) for Cite book and Cite web."""
    return {
        "batchcomplete": True,
        "redirects": [
            {"from": "Template:Web cite", "to": "Template:Cite web"},
        ],
        "pages": {
            "1001": {
                "title": "Template:Cite book",
                "params": {
                    "last": {"label": {"en": "Last name"}, "aliases": ["last1", "author"]},
                    "first": {"label": {"en": "First name"}, "aliases": ["first1"]},
                    "title": {"label": {"en": "Title"}, "required": True},
                    "year": {"label": {"en": "Year"}},
                },
                "paramOrder": ["last", "first", "title", "year"],
                "format": "inline",
                "maps": {"proveit": {"main": "title"}},
            },
            "1002": {
                "title": "Template:Cite web",
                "params": {
                    "url": {"label": "URL", "required": True},
                    "title": {"label": "Title", "required": True},
                    "access-date": {"label": "Access date", "aliases": ["accessdate"]},
                },
                "paramOrder": ["url", "title", "access-date"],
                "format": "block",
                "maps": {"proveit": {"main": "title"}},
            },
        },
    }


@pytest.fixture
def templatedata_file(tmp_path, templatedata_response):
    path = tmp_path / "templatedata.json"
    path.write_text(json.dumps(templatedata_response), encoding="utf-8")
    return path


@pytest.fixture
def app(templatedata_file):
    """Create application for testing with the TemplateData fixture as registry."""
    test_config = type(
        "TestConfig",
        (TestingConfig,),
        {"TEMPLATEDATA_PATH": templatedata_file}
    )
    app = create_app(test_config)
    yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()
