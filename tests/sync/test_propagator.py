"""
Tests for GlobalRenamePropagator and reference rewriting.

Validates exact and directory-prefix rewriting, the skip rules for default
content and explicit nulls, the type-based early-out, handling of files
whose type cannot be determined, and the special cases for the active
document.
"""

import json
import os

import pytest

from core.content.resources import Material, Prefab, Scene, SceneObject, Texture
from core.sync.events import FileEvent
from core.sync.propagator import GlobalRenamePropagator, rewrite_references
from core.sync.references import Reference


def read_json(path):
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def make_propagator(workspace, escalate_unknown_types=False):
    return GlobalRenamePropagator(
        cache=workspace.provider,
        types=workspace.registry,
        editor=workspace.session,
        settings=workspace.settings,
        ui=workspace.ui,
        escalate_unknown_types=escalate_unknown_types,
    )


def run(propagator, renames):
    return list(propagator.steps(renames))


class TestRewriteReferences:
    """Test rewriting of a single object graph"""

    def test_file_rename_matches_exact_path(self):
        material = Material(main_texture=Reference.to("/data/a.Texture.res"))

        changed = rewrite_references(material, [FileEvent.renamed("/data/a.Texture.res", "/data/b.Texture.res")])

        assert changed == 1
        assert material.main_texture.path == "/data/b.Texture.res"

    def test_file_rename_ignores_other_paths(self):
        material = Material(main_texture=Reference.to("/data/a.Texture.res.bak"))

        changed = rewrite_references(material, [FileEvent.renamed("/data/a.Texture.res", "/data/b.Texture.res")])

        assert changed == 0
        assert material.main_texture.path == "/data/a.Texture.res.bak"

    def test_directory_rename_keeps_remainder(self):
        """/data/foo -> /data/bar turns /data/foo/x/y.res into /data/bar/x/y.res"""
        scene = Scene(objects=[
            SceneObject(name="hero", components={"sprite": Reference.to("/data/foo/x/y.Texture.res")}),
            SceneObject(name="tree", components={"sprite": Reference.to("/data/foobar/y.Texture.res")}),
        ])

        changed = rewrite_references(scene, [FileEvent.renamed("/data/foo", "/data/bar", is_directory=True)])

        assert changed == 1
        assert scene.objects[0].components["sprite"].path == "/data/bar/x/y.Texture.res"
        assert scene.objects[1].components["sprite"].path == "/data/foobar/y.Texture.res"

    def test_default_content_and_nulls_skipped(self):
        scene = Scene(objects=[
            SceneObject(name="a", prefab=Reference.to("Default:/data/a.Prefab.res")),
            SceneObject(name="b", prefab=Reference.null()),
            SceneObject(name="c"),
        ])
        renames = [FileEvent.renamed("Default:/data/a.Prefab.res", "/data/z.Prefab.res")]

        assert rewrite_references(scene, renames) == 0
        assert scene.objects[0].prefab.path == "Default:/data/a.Prefab.res"
        assert scene.objects[1].prefab.explicit_null
        assert scene.objects[2].prefab.is_empty

    def test_first_matching_rename_wins(self):
        material = Material(main_texture=Reference.to("/data/a.Texture.res"))
        renames = [
            FileEvent.renamed("/data/a.Texture.res", "/data/b.Texture.res"),
            FileEvent.renamed("/data/b.Texture.res", "/data/c.Texture.res"),
        ]

        assert rewrite_references(material, renames) == 1
        assert material.main_texture.path == "/data/b.Texture.res"

    def test_shared_reference_counted_once(self):
        shared = Reference.to("/data/a.Prefab.res")
        prefab = Prefab(root=SceneObject(name="root", prefab=shared, components={"same": shared}))

        changed = rewrite_references(prefab, [FileEvent.renamed("/data/a.Prefab.res", "/data/b.Prefab.res")])

        assert changed == 1
        assert prefab.root.components["same"].path == "/data/b.Prefab.res"


class TestRenameInContent:
    """Test rewriting of resource files in the data tree"""

    def test_unloaded_file_rewritten_on_disk(self, workspace, data_dir, write_resource):
        old = os.path.normpath(str(data_dir / "hero.Texture.res"))
        new = os.path.normpath(str(data_dir / "hero2.Texture.res"))
        level = write_resource(
            data_dir / "level.Scene.res",
            Scene(objects=[SceneObject(name="hero", components={"sprite": Reference.to(old)})]),
        )
        propagator = make_propagator(workspace)

        run(propagator, [FileEvent.renamed(old, new)])

        data = read_json(level)
        assert data["data"]["objects"][0]["components"]["sprite"]["path"] == new
        assert propagator.files_saved == 1
        assert not workspace.provider.has(level)

    def test_untouched_file_not_saved(self, workspace, data_dir, write_resource):
        level = write_resource(
            data_dir / "level.Scene.res",
            Scene(objects=[SceneObject(name="hero", components={"sprite": Reference.to("/elsewhere.Texture.res")})]),
        )
        before = os.path.getmtime(level)
        propagator = make_propagator(workspace)

        run(propagator, [FileEvent.renamed(str(data_dir / "a.Texture.res"), str(data_dir / "b.Texture.res"))])

        assert propagator.files_saved == 0
        assert os.path.getmtime(level) == before

    def test_loaded_resource_rewritten_in_memory(self, workspace, data_dir, write_resource):
        old = os.path.normpath(str(data_dir / "stone.Texture.res"))
        new = os.path.normpath(str(data_dir / "rock.Texture.res"))
        path = write_resource(data_dir / "wall.Material.res", Material(main_texture=Reference.to(old)))
        material = workspace.provider.request(path)
        propagator = make_propagator(workspace)

        run(propagator, [FileEvent.renamed(old, new)])

        assert material.main_texture.path == new
        assert workspace.ui.notifications == [[material]]
        # Resident resources are left for the editor to save
        assert read_json(path)["data"]["main_texture"]["path"] == old

    def test_resource_evicted_during_scan_rewritten_on_disk(self, workspace, data_dir, write_resource):
        """A resource unloaded between steps is rewritten in its file instead"""
        old = os.path.normpath(str(data_dir / "hero.Texture.res"))
        new = os.path.normpath(str(data_dir / "hero2.Texture.res"))
        level = write_resource(
            data_dir / "level.Scene.res",
            Scene(objects=[SceneObject(name="hero", components={"sprite": Reference.to(old)})]),
        )
        workspace.provider.request(level)
        steps = make_propagator(workspace).steps([FileEvent.renamed(old, new)])

        for step in steps:
            if step.label == level:
                break
        workspace.provider.remove(level)
        list(steps)

        assert read_json(level)["data"]["objects"][0]["components"]["sprite"]["path"] == new
        assert workspace.ui.notifications == []

    def test_resource_loaded_during_scan_rewritten_in_memory(self, workspace, data_dir, write_resource):
        old = os.path.normpath(str(data_dir / "stone.Texture.res"))
        new = os.path.normpath(str(data_dir / "rock.Texture.res"))
        path = write_resource(data_dir / "wall.Material.res", Material(main_texture=Reference.to(old)))
        steps = make_propagator(workspace).steps([FileEvent.renamed(old, new)])

        for step in steps:
            if step.label == path:
                break
        material = workspace.provider.request(path)
        list(steps)

        assert material.main_texture.path == new
        assert workspace.ui.notifications == [[material]]

    def test_directory_rename_rewrites_nested_paths(self, workspace, data_dir, write_resource):
        old_dir = os.path.normpath(str(data_dir / "Sprites"))
        new_dir = os.path.normpath(str(data_dir / "Art"))
        path = write_resource(
            data_dir / "wall.Material.res",
            Material(main_texture=Reference.to(os.path.join(old_dir, "Walls", "stone.Texture.res"))),
        )
        propagator = make_propagator(workspace)

        run(propagator, [FileEvent.renamed(old_dir, new_dir, is_directory=True)])

        assert read_json(path)["data"]["main_texture"]["path"] == os.path.join(new_dir, "Walls", "stone.Texture.res")

    def test_type_early_out_skips_unrelated_files(self, workspace, data_dir, write_resource):
        """Textures cannot reference textures, so they are never loaded"""
        old = os.path.normpath(str(data_dir / "a.Texture.res"))
        new = os.path.normpath(str(data_dir / "b.Texture.res"))
        write_resource(data_dir / "b.Texture.res", Texture())
        write_resource(data_dir / "c.Texture.res", Texture())
        write_resource(data_dir / "wall.Material.res", Material(main_texture=Reference.to(old)))
        propagator = make_propagator(workspace)

        run(propagator, [FileEvent.renamed(old, new)])

        assert workspace.provider.loads == 1
        assert propagator.references_changed == 1

    def test_directory_rename_disables_early_out(self, workspace, data_dir, write_resource):
        write_resource(data_dir / "a.Texture.res", Texture())
        write_resource(data_dir / "b.Texture.res", Texture())
        propagator = make_propagator(workspace)

        run(propagator, [FileEvent.renamed(str(data_dir / "x"), str(data_dir / "y"), is_directory=True)])

        assert workspace.provider.loads == 2

    def test_unknown_type_skipped_by_default(self, workspace, data_dir, write_resource):
        old = os.path.normpath(str(data_dir / "a.Texture.res"))
        new = os.path.normpath(str(data_dir / "b.Texture.res"))
        odd = write_resource(data_dir / "odd.Legacy.res", Material(main_texture=Reference.to(old)))
        propagator = make_propagator(workspace)

        run(propagator, [FileEvent.renamed(old, new)])

        assert propagator.files_skipped == 1
        assert read_json(odd)["data"]["main_texture"]["path"] == old

    def test_unknown_type_inspected_when_escalating(self, workspace, data_dir, write_resource):
        old = os.path.normpath(str(data_dir / "a.Texture.res"))
        new = os.path.normpath(str(data_dir / "b.Texture.res"))
        odd = write_resource(data_dir / "odd.Legacy.res", Material(main_texture=Reference.to(old)))
        propagator = make_propagator(workspace, escalate_unknown_types=True)

        run(propagator, [FileEvent.renamed(old, new)])

        assert propagator.files_skipped == 0
        assert read_json(odd)["data"]["main_texture"]["path"] == new

    def test_unreadable_file_skipped(self, workspace, data_dir):
        broken = data_dir / "broken.Scene.res"
        broken.write_text("{not json", encoding="utf-8")
        propagator = make_propagator(workspace)

        run(propagator, [FileEvent.renamed(str(data_dir / "a.Prefab.res"), str(data_dir / "b.Prefab.res"))])

        assert propagator.files_skipped == 1

    def test_progress_reaches_completion(self, workspace, data_dir, write_resource):
        for index in range(3):
            write_resource(data_dir / f"level{index}.Scene.res", Scene())
        propagator = make_propagator(workspace)

        steps = run(propagator, [FileEvent.renamed(str(data_dir / "a.Prefab.res"), str(data_dir / "b.Prefab.res"))])

        fractions = [step.fraction for step in steps]
        assert fractions == sorted(fractions)
        assert steps[-1].fraction == pytest.approx(1.0)
        assert steps[-1].label == "Done"

    def test_settings_pass_takes_its_share(self, workspace, data_dir):
        propagator = make_propagator(workspace)

        steps = run(propagator, [FileEvent.renamed(str(data_dir / "a.Prefab.res"), str(data_dir / "b.Prefab.res"))])

        assert steps[0].label == "Application data"
        assert steps[3].fraction == pytest.approx(propagator.SETTINGS_SHARE)


class TestRenameInSettingsAndDocument:
    """Test settings and active document handling"""

    def test_settings_rewritten_and_saved(self, workspace, data_dir):
        old = os.path.normpath(str(data_dir / "start.Scene.res"))
        new = os.path.normpath(str(data_dir / "intro.Scene.res"))
        settings = workspace.settings
        settings.app_data.startup_scene = Reference.to(old)
        settings.user_data.recent = [Reference.to(old), Reference.to("Default:/demo.Scene.res")]
        settings.save()

        run(make_propagator(workspace), [FileEvent.renamed(old, new)])

        app = read_json(settings.app_file)
        user = read_json(settings.user_file)
        assert app["startup_scene"]["path"] == new
        assert [ref["path"] for ref in user["recent"]] == [new, "Default:/demo.Scene.res"]

    def test_sandbox_rewrites_persisted_document(self, workspace, data_dir, write_resource):
        old = os.path.normpath(str(data_dir / "a.Prefab.res"))
        new = os.path.normpath(str(data_dir / "b.Prefab.res"))
        level = write_resource(
            data_dir / "level.Scene.res",
            Scene(objects=[SceneObject(name="hero", prefab=Reference.to(old))]),
        )
        workspace.session.open_document(level)
        workspace.session.enter_sandbox()

        run(make_propagator(workspace), [FileEvent.renamed(old, new)])

        assert read_json(level)["data"]["objects"][0]["prefab"]["path"] == new

    def test_unsaved_document_rewritten_live(self, workspace, data_dir):
        old = os.path.normpath(str(data_dir / "a.Prefab.res"))
        new = os.path.normpath(str(data_dir / "b.Prefab.res"))
        draft = Scene(objects=[SceneObject(name="hero", prefab=Reference.to(old))])
        workspace.session.activate_document(draft)

        run(make_propagator(workspace), [FileEvent.renamed(old, new)])

        assert draft.objects[0].prefab.path == new
        assert [draft] in workspace.ui.notifications
