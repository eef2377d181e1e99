import numpy as np


class Light:
    def __init__(self, position):
        self.position = np.array(position, dtype=np.float64)

    def __repr__(self):
        return "Light(position={})".format(self.position.tolist())
