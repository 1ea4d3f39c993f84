import json

import pytest

from thisorthat.config import settings
from thisorthat.core.data_loader import (
    clean_website_url, load_designs, validate_designs_data
)
from thisorthat.core.models import CategoryName
from thisorthat.utils.validation import ValidationError

def _document(*designs, metadata=None):
    return {
        "metadata": metadata if metadata is not None else {"generatedAt": "2025-01-30", "totalDesigns": len(designs)},
        "designs": list(designs),
    }

def _design(design_id="test_001", **fields):
    record = {"id": design_id, "image": "https://example.com/image.jpg"}
    record.update(fields)
    return record

def test_valid_minimal_design():
    report = validate_designs_data(_document(_design(tags={
        "style": ["Modern"],
        "industry": ["Tech"],
        "colors": ["#FFFFFF"],
    })))

    assert report.is_valid
    assert report.errors == []
    assert len(report.designs) == 1
    design = report.designs[0]
    assert design.tags_for(CategoryName.STYLE) == ["Modern"]
    assert design.category == "Design"
    assert report.metadata["totalDesigns"] == 1

@pytest.mark.parametrize("data", [None, [], "designs", {"designs": "nope"}, {"designs": []}])
def test_invalid_documents(data):
    report = validate_designs_data(data)

    assert not report.is_valid
    assert report.errors
    assert report.designs == []

def test_designs_missing_id_or_image_are_dropped():
    report = validate_designs_data(_document(
        {"title": "Missing ID and image", "tags": {}},
        _design("no_image", image=""),
        _design("ok"),
    ))

    assert not report.is_valid
    assert [design.id for design in report.designs] == ["ok"]
    assert len(report.errors) == 2

def test_colors_are_cleaned():
    report = validate_designs_data(_document(_design(tags={
        "colors": ["#ffffff", "invalid-color", "#12345", "#GGGGGG", "#123456", "#FFFFFF", 7],
    })))

    design = report.designs[0]
    assert design.tags_for(CategoryName.COLORS) == ["#FFFFFF", "#123456"]
    assert report.is_valid
    assert any("invalid color format" in warning for warning in report.warnings)

def test_scraping_artifacts_are_removed():
    report = validate_designs_data(_document(_design(tags={
        "style": ["Modern", ",", "Clean, Minimal", "Claim this website", "PRO", "Bold", "modern"],
        "industry": ["Tech", "Health & Fitness, Medical", ","],
    })))

    design = report.designs[0]
    assert design.tags_for(CategoryName.STYLE) == ["Modern", "Bold"]
    assert design.tags_for(CategoryName.INDUSTRY) == ["Tech"]

def test_flat_tag_lists_are_categorized():
    report = validate_designs_data(_document(_design(
        tags=["Gradient", "Sans Serif", "Tech", "React", "Landing", "Minimalist", "PRO"],
        colors=["#000000"],
        category=["Landing", "Portfolio"],
    )))

    design = report.designs[0]
    assert design.tags_for(CategoryName.STYLE) == ["Gradient", "Minimalist"]
    assert design.tags_for(CategoryName.TYPOGRAPHY) == ["Sans Serif"]
    assert design.tags_for(CategoryName.INDUSTRY) == ["Tech"]
    assert design.tags_for(CategoryName.PLATFORM) == ["React"]
    assert design.tags_for(CategoryName.TYPE) == ["Landing"]
    assert design.tags_for(CategoryName.COLORS) == ["#000000"]
    assert design.category == "Landing"

def test_flat_tag_lists_keep_tags_differing_in_case():
    report = validate_designs_data(_document(_design(tags=["Bold", "bold", "Minimal", "Bold"])))

    design = report.designs[0]
    assert design.tags_for(CategoryName.STYLE) == ["Bold", "bold", "Minimal"]

def test_duplicate_ids_keep_first():
    report = validate_designs_data(_document(_design("a", name="First"), _design("a", name="Second")))

    assert [design.name for design in report.designs] == ["First"]
    assert any("duplicates id" in warning for warning in report.warnings)

def test_missing_metadata_is_a_warning():
    report = validate_designs_data({"designs": [_design()]})

    assert report.is_valid
    assert "Missing or invalid metadata section" in report.warnings

def test_website_url_is_cleaned():
    report = validate_designs_data(_document(_design(websiteUrl="https://example.com/?ref=land-book.com")))

    assert report.designs[0].website_url == "https://example.com/"

@pytest.mark.parametrize("url, expected", [
    ("https://example.com/?ref=land-book.com", "https://example.com/"),
    ("https://ledger.app/pricing?ref=land-book.com&plan=pro", "https://ledger.app/pricing?plan=pro"),
    ("https://example.com/about", "https://example.com/about"),
    ("https://example.com/search?q=web%20design&b=2&a=1", "https://example.com/search?q=web%20design&b=2&a=1"),
    ("not a url", "not a url"),
    (None, None),
    ("", ""),
])
def test_clean_website_url(url, expected):
    assert clean_website_url(url) == expected

def test_load_bundled_sample_catalogue():
    designs = load_designs(settings.FALLBACK_DESIGNS_FILE)

    assert len(designs) == 8
    by_id = {design.id: design for design in designs}
    assert by_id["design_002"].category == "Portfolio"
    assert by_id["design_004"].website_url == "https://ledger.app/pricing?plan=pro"

def test_load_falls_back_when_primary_is_missing(tmp_path):
    designs = load_designs(str(tmp_path / "missing.json"), settings.FALLBACK_DESIGNS_FILE)

    assert len(designs) == 8

def test_load_raises_when_no_file_exists(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_designs(str(tmp_path / "missing.json"), str(tmp_path / "also-missing.json"))

def test_load_requires_two_designs(tmp_path):
    path = tmp_path / "designs.json"
    path.write_text(json.dumps(_document(_design())), encoding="utf-8")

    with pytest.raises(ValidationError) as excinfo:
        load_designs(str(path))
    assert "at least 2" in str(excinfo.value)

def test_load_rejects_invalid_json(tmp_path):
    path = tmp_path / "designs.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ValidationError):
        load_designs(str(path))
