import numpy as np

# limits of the domain accepted by the session (both axes)
BOUNDING_BOX = 1e6

# sentinel triangle, counterclockwise, far outside the domain
BOUNDING_TRIANGLE = np.array(
    [
        [1e10, 0.0],
        [0.0, 1e10],
        [-1e10, -1e10],
    ]
)
N_SENTINELS = 3

DEFAULT_POINT_COUNT = 1000
