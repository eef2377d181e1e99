import numpy as np
from PIL import Image


class FrameBuffer:
    """
    Per-pixel buffers handed to the display and image writer, in raster order.

    positions: (W*H, 2) float32 screen coordinates (row, col) in [-1, 1)
    colors: (W*H, 3) float32 RGB
    """

    def __init__(self, width, height, positions, colors):
        self.width = width
        self.height = height
        self.positions = positions
        self.colors = colors

    def __len__(self):
        return self.positions.shape[0]

    def to_image(self):
        """
        (H, W, 3) image indexed [row, column]. Screen col -1 is the bottom
        of the display, so pixel rows are flipped to put it last.
        """
        image = self.colors.reshape((self.height, self.width, 3))
        return image[::-1]


def assemble_frame(camera, colors):
    """Pack shaded colors with the camera's screen positions."""
    positions = camera.screen_positions()
    colors = np.asarray(colors, dtype=np.float32)

    if colors.shape != (positions.shape[0], 3):
        raise ValueError(
            "Expected {} colors for a {}x{} frame, got array of shape {}".format(
                positions.shape[0], camera.width, camera.height, colors.shape
            )
        )

    return FrameBuffer(camera.width, camera.height, positions, colors)


def save_image(image_array, output_path):
    """Save the rendered image to a file."""
    # Clamp values to [0, 1] then scale to [0, 255]
    image_array = np.clip(image_array, 0, 1)
    image_array = (image_array * 255).astype(np.uint8)

    image = Image.fromarray(image_array)
    image.save(output_path)
    print(f"Image saved to {output_path}")
