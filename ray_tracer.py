import argparse
import sys
import time

import numpy as np
from numba import njit

from camera import CAMERA_POSITION, NO_HIT, Camera
from frame import assemble_frame, save_image
from material import material_arrays
from scene import PLANE, SPHERE, TRIANGLE, SceneCapacityError, parse_scene_file
from scene_settings import DEFAULT_HEIGHT, DEFAULT_OUTPUT, DEFAULT_WIDTH, SCENE_PRESETS, SceneSettings
from surfaces.infinite_plane import plane_distance
from surfaces.sphere import sphere_distance
from surfaces.triangle import triangle_distance
from utils import normalize_batch, unit3


# =============================================================================
# Numba JIT-compiled helper functions for hot paths
# =============================================================================

@njit(cache=True)
def _record_hit(ray_idx, t, hx, hy, hz, kind, index,
                best_distance, hit_points, hit_kind, hit_index):
    """
    Fold one valid hit into a ray (JIT-compiled).

    The distance only moves to a smaller value, but the shading data is
    taken whenever the hit equals the running minimum, so on a tie the last
    primitive tested shades the pixel.
    """
    if best_distance[ray_idx] == NO_HIT or t < best_distance[ray_idx]:
        best_distance[ray_idx] = t

    if best_distance[ray_idx] == t:
        hit_points[ray_idx, 0] = hx
        hit_points[ray_idx, 1] = hy
        hit_points[ray_idx, 2] = hz
        hit_kind[ray_idx] = kind
        hit_index[ray_idx] = index


@njit(cache=True)
def _sphere_pass(origin, directions, spheres, num_spheres,
                 best_distance, hit_points, hit_kind, hit_index):
    N = directions.shape[0]
    for i in range(num_spheres):
        sphere = spheres[i]
        for ray_idx in range(N):
            hit, t, hx, hy, hz = sphere_distance(
                directions[ray_idx, 0], directions[ray_idx, 1], directions[ray_idx, 2],
                origin[0], origin[1], origin[2],
                sphere[0], sphere[1], sphere[2], sphere[3]
            )
            if hit:
                _record_hit(ray_idx, t, hx, hy, hz, SPHERE, i,
                            best_distance, hit_points, hit_kind, hit_index)


@njit(cache=True)
def _triangle_pass(origin, directions, triangles, num_triangles,
                   best_distance, hit_points, hit_kind, hit_index):
    N = directions.shape[0]
    for i in range(num_triangles):
        triangle = triangles[i]
        for ray_idx in range(N):
            hit, t, hx, hy, hz = triangle_distance(
                directions[ray_idx, 0], directions[ray_idx, 1], directions[ray_idx, 2],
                origin[0], origin[1], origin[2],
                triangle
            )
            if hit:
                _record_hit(ray_idx, t, hx, hy, hz, TRIANGLE, i,
                            best_distance, hit_points, hit_kind, hit_index)


@njit(cache=True)
def _plane_pass(origin, directions, planes, num_planes,
                best_distance, hit_points, hit_kind, hit_index):
    N = directions.shape[0]
    for i in range(num_planes):
        plane = planes[i]
        for ray_idx in range(N):
            hit, t, hx, hy, hz = plane_distance(
                directions[ray_idx, 0], directions[ray_idx, 1], directions[ray_idx, 2],
                origin[0], origin[1], origin[2],
                plane
            )
            if hit:
                _record_hit(ray_idx, t, hx, hy, hz, PLANE, i,
                            best_distance, hit_points, hit_kind, hit_index)


@njit(cache=True)
def _shade_kernel(hit_kind, hit_index, hit_points,
                  spheres, triangle_normals, plane_normals,
                  has_light, light_position, albedos, exponents,
                  background, colors):
    """
    Local illumination for every ray (JIT-compiled).

    color = albedo * (0.5 + 0.5 * diffuse) + 0.5 * albedo * specular
    with diffuse = max(0, -N.L) and specular = max(0, -N.H)^exponent, where
    H is simply the normalized light position.
    """
    N = hit_kind.shape[0]
    hx_l, hy_l, hz_l = unit3(light_position[0], light_position[1], light_position[2])

    for ray_idx in range(N):
        kind = hit_kind[ray_idx]
        if kind < 0:
            colors[ray_idx, 0] = background[0]
            colors[ray_idx, 1] = background[1]
            colors[ray_idx, 2] = background[2]
            continue

        index = hit_index[ray_idx]
        px = hit_points[ray_idx, 0]
        py = hit_points[ray_idx, 1]
        pz = hit_points[ray_idx, 2]

        if kind == SPHERE:
            nx, ny, nz = unit3(px - spheres[index, 0], py - spheres[index, 1], pz - spheres[index, 2])
        elif kind == TRIANGLE:
            nx = triangle_normals[index, 0]
            ny = triangle_normals[index, 1]
            nz = triangle_normals[index, 2]
        else:
            nx = plane_normals[index, 0]
            ny = plane_normals[index, 1]
            nz = plane_normals[index, 2]

        diffuse = 0.0
        specular = 0.0
        if has_light:
            lx, ly, lz = unit3(light_position[0] - px, light_position[1] - py, light_position[2] - pz)
            diffuse = max(0.0, -(nx*lx + ny*ly + nz*lz))
            specular = max(0.0, -(nx*hx_l + ny*hy_l + nz*hz_l)) ** exponents[kind, index]

        for c in range(3):
            albedo = albedos[kind, index, c]
            colors[ray_idx, c] = albedo * (0.5 + 0.5 * diffuse) + 0.5 * albedo * specular


# =============================================================================
# Intersection and shading
# =============================================================================

def prepare_surface_data(scene):
    """
    Prepare scene data as numpy arrays for the JIT-compiled passes.

    Arrays always hold at least one row so empty kinds still type-check.
    """
    num_spheres = len(scene.spheres)
    num_triangles = len(scene.triangles)
    num_planes = len(scene.planes)

    spheres = np.zeros((max(1, num_spheres), 4))
    for idx, s in enumerate(scene.spheres):
        spheres[idx] = s.as_array()

    triangles = np.zeros((max(1, num_triangles), 9))
    triangle_normals = np.zeros((max(1, num_triangles), 3))
    for idx, tri in enumerate(scene.triangles):
        triangles[idx] = tri.as_array()
        triangle_normals[idx] = tri.normal

    planes = np.zeros((max(1, num_planes), 6))
    for idx, p in enumerate(scene.planes):
        planes[idx] = p.as_array()
    plane_normals = normalize_batch(planes[:, :3])

    light = scene.light
    light_position = light.position.copy() if light is not None else np.zeros(3)

    return {
        'spheres': spheres,
        'triangles': triangles,
        'triangle_normals': triangle_normals,
        'planes': planes,
        'plane_normals': plane_normals,
        'num_spheres': num_spheres,
        'num_triangles': num_triangles,
        'num_planes': num_planes,
        'has_light': light is not None,
        'light_position': light_position,
    }


def _ray_buffers(rays):
    return rays.best_distance, rays.hit_points, rays.hit_kind, rays.hit_index


def sphere_pass(rays, surface_data, origin=CAMERA_POSITION):
    _sphere_pass(origin, rays.directions, surface_data['spheres'],
                 surface_data['num_spheres'], *_ray_buffers(rays))


def triangle_pass(rays, surface_data, origin=CAMERA_POSITION):
    _triangle_pass(origin, rays.directions, surface_data['triangles'],
                   surface_data['num_triangles'], *_ray_buffers(rays))


def plane_pass(rays, surface_data, origin=CAMERA_POSITION):
    _plane_pass(origin, rays.directions, surface_data['planes'],
                surface_data['num_planes'], *_ray_buffers(rays))


def find_nearest_hits(rays, surface_data, origin=CAMERA_POSITION):
    """
    Resolve the nearest hit of every ray in place.

    The passes run spheres, then triangles, then planes; each reads the
    distances left by the one before.
    """
    sphere_pass(rays, surface_data, origin)
    triangle_pass(rays, surface_data, origin)
    plane_pass(rays, surface_data, origin)
    return rays


def shade(rays, surface_data, albedos, exponents, background_color):
    """Compute an RGB color per ray from its resolved hit. Returns (N, 3)."""
    colors = np.zeros((len(rays), 3))
    _shade_kernel(
        rays.hit_kind, rays.hit_index, rays.hit_points,
        surface_data['spheres'], surface_data['triangle_normals'], surface_data['plane_normals'],
        surface_data['has_light'], surface_data['light_position'],
        albedos, exponents,
        np.array(background_color, dtype=np.float64), colors
    )
    return colors


def trace_rays(rays, surface_data, albedos, exponents, background_color):
    """Intersect then shade a batch of rays."""
    find_nearest_hits(rays, surface_data)
    return shade(rays, surface_data, albedos, exponents, background_color)


# =============================================================================
# Frame rendering
# =============================================================================

def load_scene(scene_settings):
    """Parse the active scene file into a fresh Scene."""
    return parse_scene_file(scene_settings.scene_file)


def make_camera(scene_settings):
    return Camera(scene_settings.width, scene_settings.height, scene_settings.convention)


def render_frame(scene, scene_settings):
    """
    Render one frame of a parsed scene (single process).

    Returns the FrameBuffer for the display and image writer.
    """
    camera = make_camera(scene_settings)
    rays = camera.generate_all_rays()

    surface_data = prepare_surface_data(scene)
    albedos, exponents = material_arrays(scene_settings.scene_id)

    colors = trace_rays(rays, surface_data, albedos, exponents, scene_settings.background_color)
    return assemble_frame(camera, colors)


def _render_row_chunk(args):
    """
    Worker function to render a chunk of pixel rows.
    Called by multiprocessing pool.

    Args:
        args: tuple of (row_start, row_end, camera_data, scene_data)

    Returns:
        (row_start, row_end, colors) - the rendered chunk
    """
    row_start, row_end, camera_data, scene_data = args

    camera = Camera(
        camera_data['width'],
        camera_data['height'],
        camera_data['convention'],
        camera_data['focal_offset']
    )
    rays = camera.generate_rays_for_rows(row_start, row_end)

    colors = trace_rays(
        rays,
        scene_data['surface_data'],
        scene_data['albedos'],
        scene_data['exponents'],
        scene_data['background_color']
    )
    return row_start, row_end, colors


def render_frame_parallel(scene, scene_settings, num_workers=None):
    """
    Render one frame using multiprocessing (parallel row-based rendering).

    Rays are independent, so each worker runs all three passes and the
    shading on its own rows; the pass order per ray is unchanged.

    Args:
        num_workers: number of worker processes (default: CPU count)
    """
    import multiprocessing as mp

    if num_workers is None:
        num_workers = mp.cpu_count()

    start_time = time.time()

    camera = make_camera(scene_settings)
    width, height = camera.width, camera.height

    camera_data = {
        'width': width,
        'height': height,
        'convention': camera.convention,
        'focal_offset': camera.focal_offset,
    }

    albedos, exponents = material_arrays(scene_settings.scene_id)
    scene_data = {
        'surface_data': prepare_surface_data(scene),
        'albedos': albedos,
        'exponents': exponents,
        'background_color': scene_settings.background_color,
    }

    # Divide rows into chunks
    rows_per_chunk = max(1, height // (num_workers * 4))  # 4 chunks per worker for load balancing
    chunks = []
    for row_start in range(0, height, rows_per_chunk):
        row_end = min(row_start + rows_per_chunk, height)
        chunks.append((row_start, row_end, camera_data, scene_data))

    print(f"Divided {width}x{height} into {len(chunks)} chunks of ~{rows_per_chunk} rows for {num_workers} workers")

    with mp.Pool(num_workers) as pool:
        results = pool.map(_render_row_chunk, chunks)

    # Chunks are contiguous pixel rows, so colors stay in raster order
    colors = np.zeros((width * height, 3))
    for row_start, row_end, chunk_colors in results:
        colors[row_start * width:row_end * width] = chunk_colors

    print(f"Parallel rendering complete in {time.time() - start_time:.2f}s")

    return assemble_frame(camera, colors)


def render_loop(scene_settings, present, should_close, num_workers=None):
    """
    Render frames until should_close() returns True.

    Each frame reloads the scene file and rebuilds every buffer; the close
    signal is only checked between frames. present(frame) receives each
    finished FrameBuffer. Returns the number of frames rendered.
    """
    frame_count = 0

    while not should_close():
        frame_start = time.time()

        scene = load_scene(scene_settings)
        if num_workers is not None and num_workers > 1:
            frame = render_frame_parallel(scene, scene_settings, num_workers)
        else:
            frame = render_frame(scene, scene_settings)

        present(frame)
        frame_count += 1
        print(f"Frame {frame_count} ({scene.summary()}) rendered in {time.time() - frame_start:.2f}s")

    return frame_count


def main(argv=None):
    parser = argparse.ArgumentParser(description='Primitive scene ray caster')
    parser.add_argument('--scene', type=int, default=1,
                        help='Scene preset to render ({})'.format(', '.join(str(k) for k in SCENE_PRESETS)))
    parser.add_argument('--scene-file', type=str, default=None,
                        help='Scene description to load instead of the preset file')
    parser.add_argument('--output', type=str, default=DEFAULT_OUTPUT, help='Name of the output image file')
    parser.add_argument('--width', type=int, default=DEFAULT_WIDTH, help='Image width')
    parser.add_argument('--height', type=int, default=DEFAULT_HEIGHT, help='Image height')
    parser.add_argument('--normalized', action='store_true',
                        help='Use unit-length (row, col, 1) ray directions')
    parser.add_argument('--frames', type=int, default=1, help='Number of frames to render')
    parser.add_argument('--workers', type=int, default=None,
                        help='Number of worker processes (default: single process)')
    args = parser.parse_args(argv)
    if args.width <= 0 or args.height <= 0:
        parser.error('--width and --height must be positive')

    scene_settings = SceneSettings(
        width=args.width,
        height=args.height,
        convention='normalized' if args.normalized else 'unnormalized',
        output_image=args.output,
    )
    scene_settings.select_scene(args.scene)
    scene_settings.scene_file_override = args.scene_file

    print(f"Rendering scene {scene_settings.scene_id} from {scene_settings.scene_file} "
          f"at {args.width}x{args.height}...")

    remaining = [args.frames]

    def should_close():
        return remaining[0] <= 0

    def present(frame):
        remaining[0] -= 1
        save_image(frame.to_image(), scene_settings.output_image)

    try:
        render_loop(scene_settings, present, should_close, args.workers)
    except SceneCapacityError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
