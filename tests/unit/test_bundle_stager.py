"""
Unit tests for bundle staging
"""
import json

import pytest

from passbundle.core.errors import BundleIOError, DirectoryConflict, ValidationError
from passbundle.models.pass_content import Image, PassContent
from passbundle.services.bundle_stager import stage_bundle


def test_stage_bundle_layout(rich_pass, tmp_path, media_dir):
    """Staged directory holds pass.json, flat images and one folder per language"""
    pass_dir = stage_bundle(rich_pass, tmp_path / "stage" / "RICH-001")

    assert sorted(p.relative_to(pass_dir).as_posix() for p in pass_dir.rglob("*")) == [
        "en.lproj",
        "en.lproj/pass.strings",
        "fr.lproj",
        "fr.lproj/pass.strings",
        "fr.lproj/strip@2x.png",
        "icon.png",
        "icon@2x.png",
        "logo.png",
        "pass.json",
    ]
    assert json.loads((pass_dir / "pass.json").read_bytes())["serialNumber"] == "RICH-001"
    assert (pass_dir / "icon@2x.png").read_bytes() == (media_dir / "icon@2x.png").read_bytes()
    assert (pass_dir / "fr.lproj" / "pass.strings").read_text(encoding="utf-8") == '"GATE" = "Porte A12";\n'


def test_empty_serial_number_fails_before_io(tmp_path):
    pass_dir = tmp_path / "never-created"
    with pytest.raises(ValidationError):
        stage_bundle(PassContent(serial_number=""), pass_dir)
    assert not pass_dir.exists()


def test_existing_directory_without_overwrite_is_untouched(sample_pass, tmp_path):
    pass_dir = tmp_path / "ABC123"
    pass_dir.mkdir()
    (pass_dir / "keep.txt").write_text("mine")

    with pytest.raises(DirectoryConflict):
        stage_bundle(sample_pass, pass_dir)

    assert [p.name for p in pass_dir.iterdir()] == ["keep.txt"]
    assert (pass_dir / "keep.txt").read_text() == "mine"


def test_existing_directory_reused_with_overwrite(sample_pass, tmp_path):
    pass_dir = tmp_path / "ABC123"
    pass_dir.mkdir()

    stage_bundle(sample_pass, pass_dir, overwrite=True)

    assert (pass_dir / "pass.json").exists()
    assert (pass_dir / "icon.png").exists()


def test_missing_image_source_raises_io_error(tmp_path):
    content = PassContent(
        serial_number="S1",
        images=[Image(path=tmp_path / "missing.png", context="icon")],
    )
    with pytest.raises(BundleIOError):
        stage_bundle(content, tmp_path / "S1")


def test_unwritable_parent_raises_io_error(sample_pass, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")
    with pytest.raises(BundleIOError):
        stage_bundle(sample_pass, blocker / "ABC123")


@pytest.mark.parametrize("serial", [".", "..", "../escape", "a/b", "nested\\name", "/abs"])
def test_serial_must_be_single_path_component(serial, tmp_path):
    pass_dir = tmp_path / "stage"
    with pytest.raises(ValidationError):
        stage_bundle(PassContent(serial_number=serial), pass_dir)
    assert not pass_dir.exists()
