import os

from camera import CONVENTIONS


SCENE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "scenes")

# Scene id -> description file; the id also selects the material table
SCENE_PRESETS = {
    1: "scene1.txt",
    2: "scene2.txt",
    3: "scene3.txt",
}

DEFAULT_WIDTH = 640
DEFAULT_HEIGHT = 640
DEFAULT_OUTPUT = "raytraced.png"


class SceneSettings:
    def __init__(self, scene_id=1, width=DEFAULT_WIDTH, height=DEFAULT_HEIGHT,
                 background_color=(0.0, 0.0, 0.0), convention="unnormalized",
                 output_image=DEFAULT_OUTPUT, scene_file=None, scene_dir=SCENE_DIR):
        if scene_id not in SCENE_PRESETS:
            raise ValueError("Unknown scene preset: {}".format(scene_id))
        if convention not in CONVENTIONS:
            raise ValueError("Unknown ray convention: {}".format(convention))

        self.scene_id = scene_id
        self.width = width
        self.height = height
        self.background_color = tuple(float(c) for c in background_color)
        self.convention = convention
        self.output_image = output_image
        self.scene_dir = scene_dir
        self.scene_file_override = scene_file

    @property
    def scene_file(self):
        """Path of the description file loaded for each frame."""
        if self.scene_file_override is not None:
            return self.scene_file_override
        return os.path.join(self.scene_dir, SCENE_PRESETS[self.scene_id])

    def select_scene(self, scene_id):
        """
        Switch to another preset. Ids outside the presets leave the current
        scene untouched and return False.
        """
        if scene_id not in SCENE_PRESETS:
            print(f"Scene {scene_id} is not a preset, keeping scene {self.scene_id}")
            return False
        self.scene_id = scene_id
        self.scene_file_override = None
        return True
