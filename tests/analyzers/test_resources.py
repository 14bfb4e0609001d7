"""Tests for the resource and native library collectors."""

from __future__ import annotations

from pathlib import Path

from inspecta.analyzers import resources
from inspecta.analyzers.native import collect_native_libraries, group_by_architecture, group_by_library_name
from inspecta.analyzers.resources import collect_resources, density_variants
from inspecta.models import NativeLibraryEntry, ResourceCategory
from tests._fixtures.project_builder import ProjectBuilder

VECTOR = '<vector xmlns:android="http://schemas.android.com/apk/res/android"><path android:pathData="M0,0"/></vector>\n'
SHAPE = '<shape xmlns:android="http://schemas.android.com/apk/res/android"/>\n'


def _seed(builder: ProjectBuilder) -> None:
    app = "app/src/main"
    builder.android_app()
    builder.write_bytes(f"{app}/res/drawable-xxhdpi/logo.png", 100)
    builder.write_bytes(f"{app}/res/drawable-hdpi/photo.JPG", 50)
    builder.write_bytes(f"{app}/res/mipmap-mdpi/ic_launcher.webp", 30)
    builder.write_bytes(f"{app}/res/font/inter.ttf", 40)
    builder.write_bytes(f"{app}/assets/fonts/mono.otf", 20)
    builder.write(
        {
            f"{app}/res/drawable/ic_arrow.xml": VECTOR,
            f"{app}/res/drawable/bg_round.xml": SHAPE,
            f"{app}/res/layout/activity_main.xml": "<LinearLayout/>\n",
            f"{app}/res/raw/confetti.json": '{"v": "5.7"}\n',
            f"{app}/assets/anim/loader.json": '{"v": "5.7"}\n',
            f"{app}/res/values/strings.xml": "<resources/>\n",
        }
    )


def test_collect_resources_classifies_by_extension_and_path(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)
    inventory = collect_resources(project_builder.scan())

    def names(category: ResourceCategory) -> list[str]:
        return sorted(item.path.name for item in inventory.by_category(category))

    assert names(ResourceCategory.IMAGE_RASTER) == ["ic_launcher.webp", "logo.png", "photo.JPG"]
    assert names(ResourceCategory.IMAGE_VECTOR) == ["ic_arrow.xml"]
    assert names(ResourceCategory.LAYOUT) == ["activity_main.xml"]
    assert names(ResourceCategory.ANIMATION) == ["confetti.json", "loader.json"]
    assert names(ResourceCategory.FONT) == ["inter.ttf", "mono.otf"]
    assert "bg_round.xml" in names(ResourceCategory.OTHER)
    assert "strings.xml" in names(ResourceCategory.OTHER)


def test_total_size_counts_every_file(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)
    root = project_builder.path()
    inventory = collect_resources(project_builder.scan())

    expected = sum(
        path.stat().st_size
        for base in (root / "app/src/main/res", root / "app/src/main/assets")
        for path in base.rglob("*")
        if path.is_file()
    )
    assert inventory.total_size == expected
    assert all(item.module == ":app" for item in inventory.files)


def test_density_bucket_is_parsed_from_qualifier(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)
    inventory = collect_resources(project_builder.scan())
    by_name = {item.path.name: item for item in inventory.files}

    assert by_name["logo.png"].density == "xxhdpi"
    assert by_name["photo.JPG"].density == "hdpi"
    assert by_name["inter.ttf"].density is None
    assert density_variants(inventory.by_category(ResourceCategory.IMAGE_RASTER)) == {
        "mdpi": 1,
        "hdpi": 1,
        "xxhdpi": 1,
    }


def test_unreadable_drawable_is_treated_as_non_vector(project_builder: ProjectBuilder, monkeypatch) -> None:
    _seed(project_builder)

    def _fail(path: Path) -> str:
        raise PermissionError("denied")

    monkeypatch.setattr(resources, "read_text", _fail)
    inventory = collect_resources(project_builder.scan())

    assert inventory.by_category(ResourceCategory.IMAGE_VECTOR) == []
    assert any(item.path.name == "ic_arrow.xml" for item in inventory.by_category(ResourceCategory.OTHER))


def test_collect_native_libraries_records_architecture(project_builder: ProjectBuilder) -> None:
    project_builder.android_app()
    project_builder.write_bytes("app/src/main/jniLibs/arm64-v8a/libcore.so", 64)
    project_builder.write_bytes("app/src/main/jniLibs/x86/libcore.so", 32)
    project_builder.write_bytes("app/src/main/jniLibs/x86/readme.txt", 5)

    inventory = collect_native_libraries(project_builder.scan())

    assert [(entry.name, entry.architecture, entry.size) for entry in inventory.entries] == [
        ("libcore.so", "arm64-v8a", 64),
        ("libcore.so", "x86", 32),
    ]
    assert inventory.total_size == 96


def test_native_grouping_keeps_variants_and_orders_architectures() -> None:
    entries = [
        NativeLibraryEntry(name="libml.so", path="lib/x86/libml.so", architecture="x86", size=10),
        NativeLibraryEntry(name="libml.so", path="lib/arm64-v8a/libml.so", architecture="arm64-v8a", size=30),
        NativeLibraryEntry(name="libc++_shared.so", path="lib/arm64-v8a/libc++_shared.so", architecture="arm64-v8a", size=5),
        NativeLibraryEntry(name="libexotic.so", path="lib/mips/libexotic.so", architecture="mips", size=1),
    ]

    assert group_by_library_name(entries) == [
        ("libml.so", 2, 40),
        ("libc++_shared.so", 1, 5),
        ("libexotic.so", 1, 1),
    ]
    assert list(group_by_architecture(entries).items()) == [
        ("arm64-v8a", (2, 35)),
        ("x86", (1, 10)),
        ("mips", (1, 1)),
    ]


def test_gitignored_native_libraries_are_collected(project_builder: ProjectBuilder) -> None:
    project_builder.android_app()
    project_builder.write({".gitignore": "*.so\n"})
    project_builder.write_bytes("app/src/main/jniLibs/arm64-v8a/libfoo.so", 16)

    inventory = collect_native_libraries(project_builder.scan())

    assert [(entry.name, entry.architecture, entry.size) for entry in inventory.entries] == [("libfoo.so", "arm64-v8a", 16)]


def test_resource_source_root_is_recorded(project_builder: ProjectBuilder) -> None:
    project_builder.android_app()
    project_builder.write_bytes("app/src/main/assets/res/banner.png", 5)
    project_builder.write_bytes("app/src/main/res/drawable/icon.png", 5)

    inventory = collect_resources(project_builder.scan())
    roots = {item.path.name: (item.source_root, item.in_res) for item in inventory.files}

    assert roots == {"banner.png": ("assets", False), "icon.png": ("res", True)}
