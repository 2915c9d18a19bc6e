"""Unit tests for the Scene builder.

Tests cover:
- Unified material ids and type dispatch lookup
- Sharing one material between spheres
- Validation of handles and parameters
- Dict and JSON serialization
- Presets
"""

import json

import pytest
import taichi as ti


class TestMaterialRegistration:
    """Tests for registering materials through the Scene."""

    def test_unified_material_ids(self):
        """Test ids are consecutive across material types."""
        from src.raytrace.scene.manager import MaterialType, Scene

        scene = Scene()
        diffuse = scene.add_lambertian_material((0.5, 0.5, 0.5))
        metal = scene.add_metal_material((0.8, 0.8, 0.8), fuzz=0.2)
        glass = scene.add_dielectric_material(1.5)
        metal2 = scene.add_metal_material((0.1, 0.1, 0.1))

        assert (diffuse, metal, glass, metal2) == (0, 1, 2, 3)
        assert scene.get_material_count() == 4
        assert scene.get_material_info(metal2).material_type == MaterialType.METAL
        # Second metal is index 1 in the metal registry
        assert scene.get_material_info(metal2).type_index == 1
        assert scene.get_material_info(99) is None

    def test_material_type_lookup_in_kernel(self):
        """Test the kernel-side lookup recovers type and type-local index."""
        from src.raytrace.scene.manager import (
            MaterialType,
            Scene,
            get_material_type,
            get_material_type_index,
        )

        scene = Scene()
        scene.add_lambertian_material((0.5, 0.5, 0.5))
        scene.add_dielectric_material(1.5)
        scene.add_lambertian_material((0.2, 0.2, 0.2))

        types = ti.field(dtype=ti.i32, shape=4)
        indices = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel():
            for k in range(4):
                types[k] = get_material_type(k)
                indices[k] = get_material_type_index(k)

        test_kernel()
        assert types.to_numpy().tolist() == [
            int(MaterialType.LAMBERTIAN),
            int(MaterialType.DIELECTRIC),
            int(MaterialType.LAMBERTIAN),
            -1,
        ]
        assert indices.to_numpy().tolist() == [0, 0, 1, -1]

    def test_fuzz_recorded_clamped(self):
        """Test the recorded metal parameters reflect the clamped fuzz."""
        from src.raytrace.scene.manager import Scene

        scene = Scene()
        mat = scene.add_metal_material((0.5, 0.5, 0.5), fuzz=3.0)
        assert scene.get_material_info(mat).params["fuzz"] == 1.0

    def test_invalid_parameters_propagate(self):
        """Test parameter errors from the registries surface as ValueError."""
        from src.raytrace.scene.manager import Scene

        scene = Scene()
        with pytest.raises(ValueError):
            scene.add_lambertian_material((2.0, 0.0, 0.0))
        with pytest.raises(ValueError):
            scene.add_dielectric_material(-1.0)
        assert scene.get_material_count() == 0


class TestSpheres:
    """Tests for adding spheres through the Scene."""

    def test_shared_material(self):
        """Test one material handle may be used by several spheres."""
        from src.raytrace.scene.manager import Scene

        scene = Scene()
        mat = scene.add_lambertian_material((0.2, 0.2, 0.2))
        scene.add_sphere((-1.0, 0.0, -2.0), 0.5, mat)
        scene.add_sphere((1.0, 0.0, -2.0), 0.5, mat)

        assert scene.get_sphere_count() == 2
        assert scene.get_material_count() == 1
        assert [s.material_id for s in scene.spheres] == [mat, mat]

    @pytest.mark.parametrize("material_id", [-1, 1, 100])
    def test_invalid_material_id(self, material_id):
        """Test unknown material handles are rejected."""
        from src.raytrace.scene.manager import Scene

        scene = Scene()
        scene.add_lambertian_material((0.5, 0.5, 0.5))
        with pytest.raises(ValueError, match="Invalid material_id"):
            scene.add_sphere((0.0, 0.0, -1.0), 0.5, material_id)

    def test_invalid_radius(self):
        """Test non-positive radii are rejected."""
        from src.raytrace.scene.manager import Scene

        scene = Scene()
        mat = scene.add_lambertian_material((0.5, 0.5, 0.5))
        with pytest.raises(ValueError, match="radius"):
            scene.add_sphere((0.0, 0.0, -1.0), 0.0, mat)
        assert scene.get_sphere_count() == 0
        assert scene.spheres == []

    def test_new_scene_resets_storage(self):
        """Test constructing a Scene clears previously stored spheres."""
        from src.raytrace.scene.manager import Scene

        first = Scene()
        mat = first.add_lambertian_material((0.5, 0.5, 0.5))
        first.add_sphere((0.0, 0.0, -1.0), 0.5, mat)

        second = Scene()
        assert second.get_sphere_count() == 0
        assert second.get_material_count() == 0

    def test_capacities(self):
        """Test the reported capacities match the storage sizes."""
        from src.raytrace.scene.intersection import MAX_SPHERES
        from src.raytrace.scene.manager import MAX_MATERIALS, Scene

        assert Scene.get_max_spheres() == MAX_SPHERES
        assert Scene.get_max_materials() == MAX_MATERIALS

    def test_repr(self):
        """Test the repr reports counts."""
        from src.raytrace.scene.manager import Scene

        scene = Scene()
        scene.add_dielectric_material()
        assert repr(scene) == "Scene(materials=1, spheres=0)"


class TestSerialization:
    """Tests for to_dict, from_dict and load_scene_file."""

    def test_round_trip(self):
        """Test a scene rebuilt from its dict has the same description."""
        from src.raytrace.scene.manager import Scene

        scene = Scene()
        ground = scene.add_lambertian_material((0.8, 0.8, 0.0))
        metal = scene.add_metal_material((0.4, 0.4, 0.2), fuzz=1.0)
        glass = scene.add_dielectric_material(1.5)
        scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
        scene.add_sphere((1.0, 0.0, -1.0), 0.5, metal)
        scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
        data = scene.to_dict()

        rebuilt = Scene.from_dict(data)
        assert rebuilt.to_dict() == data
        assert rebuilt.get_sphere_count() == 3

    def test_to_dict_is_json_serializable(self):
        """Test to_dict output survives json.dumps."""
        from src.raytrace.scene.manager import Scene

        scene = Scene()
        mat = scene.add_lambertian_material((0.1, 0.2, 0.3))
        scene.add_sphere((0.0, 0.0, -1.0), 0.5, mat)
        data = json.loads(json.dumps(scene.to_dict()))

        assert data["materials"] == [{"type": "lambertian", "albedo": [0.1, 0.2, 0.3]}]
        assert data["spheres"] == [{"center": [0.0, 0.0, -1.0], "radius": 0.5, "material_id": 0}]

    def test_unknown_material_type(self):
        """Test unknown material types raise ValueError."""
        from src.raytrace.scene.manager import Scene

        with pytest.raises(ValueError, match="Unknown material type"):
            Scene.from_dict({"materials": [{"type": "plastic"}], "spheres": []})

    def test_malformed_vector(self):
        """Test vectors that are not 3 numbers raise ValueError."""
        from src.raytrace.scene.manager import Scene

        with pytest.raises(ValueError, match="center"):
            Scene.from_dict(
                {
                    "materials": [{"type": "dielectric", "ior": 1.5}],
                    "spheres": [{"center": [0, 0], "radius": 1.0, "material_id": 0}],
                }
            )

    def test_load_scene_file(self, tmp_path):
        """Test a JSON file is loaded into a scene."""
        from src.raytrace.scene.manager import load_scene_file

        path = tmp_path / "scene.json"
        path.write_text(
            json.dumps(
                {
                    "materials": [{"type": "metal", "albedo": [0.8, 0.6, 0.2], "fuzz": 0.0}],
                    "spheres": [{"center": [0, 0, -1], "radius": 0.5, "material_id": 0}],
                }
            )
        )
        scene = load_scene_file(path)
        assert scene.get_sphere_count() == 1
        assert scene.get_material_count() == 1

    def test_load_scene_file_not_an_object(self, tmp_path):
        """Test a JSON file holding a list is rejected."""
        from src.raytrace.scene.manager import load_scene_file

        path = tmp_path / "scene.json"
        path.write_text("[]")
        with pytest.raises(ValueError, match="JSON object"):
            load_scene_file(path)

    def test_load_scene_file_missing(self, tmp_path):
        """Test a missing file raises OSError."""
        from src.raytrace.scene.manager import load_scene_file

        with pytest.raises(OSError):
            load_scene_file(tmp_path / "missing.json")


class TestPresets:
    """Tests for the ready-made scenes."""

    def test_default_scene(self):
        """Test the default scene has six spheres sharing four materials."""
        from src.raytrace.scene.manager import MaterialType
        from src.raytrace.scene.presets import create_default_scene

        scene, camera = create_default_scene()
        assert scene.get_sphere_count() == 6
        assert scene.get_material_count() == 4
        assert abs(camera.aspect_ratio - 16.0 / 9.0) < 1e-9

        ground = scene.spheres[0]
        assert ground.center == (0.0, -100.5, -1.0)
        assert ground.radius == 100.0

        metal_spheres = [
            s
            for s in scene.spheres
            if scene.get_material_info(s.material_id).material_type == MaterialType.METAL
        ]
        assert len(metal_spheres) == 2
        assert metal_spheres[0].material_id == metal_spheres[1].material_id

    def test_material_showcase_scene(self):
        """Test the showcase scene uses each material type."""
        from src.raytrace.scene.manager import MaterialType
        from src.raytrace.scene.presets import create_material_showcase_scene

        scene, _ = create_material_showcase_scene(aspect_ratio=2.0)
        kinds = {m.material_type for m in scene.materials}
        assert kinds == {MaterialType.LAMBERTIAN, MaterialType.METAL, MaterialType.DIELECTRIC}
        assert scene.get_sphere_count() == 4
