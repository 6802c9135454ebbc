"""GLB export of a built diorama scene graph."""

import logging
import time

import numpy as np
import trimesh

from .models import PathManager
from .scene import Light
from .voxels import InstancedStructure

logger = logging.getLogger(__name__)


def _visible_nodes(root):
    """Yield ``(node, world_matrix)`` for every visible node, pruning hidden subtrees."""
    stack = [(root, np.eye(4))]
    while stack:
        node, parent_matrix = stack.pop()
        if not node.visible:
            continue
        matrix = parent_matrix @ node.local_matrix()
        yield node, matrix
        stack.extend((child, matrix) for child in reversed(node.children))


def _bake(node, matrix):
    """World-space trimesh for *node*'s geometry, or None for lights and empty nodes."""
    geom = node.geometry
    if geom is None or isinstance(geom, Light):
        return None

    if isinstance(geom, InstancedStructure):
        mesh = geom.to_mesh()
        if geom.colors is None:
            mesh.visual = trimesh.visual.TextureVisuals(material=geom.material.to_pbr())
    else:
        mesh = geom.to_mesh()
        if node.material is not None:
            mesh.visual = trimesh.visual.TextureVisuals(material=node.material.to_pbr())

    if len(mesh.faces) == 0:
        return None
    mesh.apply_transform(matrix)
    return mesh


def export_glb(root, output_path) -> str:
    """Bake every visible mesh under *root* into a GLB file.

    Parameters
    ----------
    root : SceneNode
        Top of the scene graph, usually ``Diorama.root``.
    output_path : str or Path
        Relative paths land in ``OUTPUT_DIR``.

    Returns the written path as a string.
    """
    logger.info("Generating GLB file...")
    output_path = PathManager.get_output_path(str(output_path))
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _timings = {}

    _t0 = time.perf_counter()
    meshes = []
    for i, (node, matrix) in enumerate(_visible_nodes(root)):
        try:
            mesh = _bake(node, matrix)
        except ValueError as e:
            logger.warning(f"Skipping {node.name or 'node'}: {e}")
            continue
        if mesh is not None:
            meshes.append((f"{node.name or type(node.geometry).__name__.lower()}_{i}", mesh))
    _timings['1_bake'] = time.perf_counter() - _t0

    if not meshes:
        raise ValueError("No visible geometry to generate GLB file")

    _t0 = time.perf_counter()
    glb_scene = trimesh.Scene()
    for name, mesh in meshes:
        glb_scene.add_geometry(mesh, geom_name=name)
    glb_scene.export(str(output_path), file_type='glb')
    _timings['2_assembly_export'] = time.perf_counter() - _t0

    # ── Timing summary ──
    logger.info("=" * 60)
    logger.info("GLB EXPORT TIMING BREAKDOWN")
    logger.info("=" * 60)
    _total = 0.0
    for _lbl, _dur in sorted(_timings.items()):
        logger.info(f"  {_lbl}: {_dur:.2f}s")
        _total += _dur
    logger.info(f"  TOTAL: {_total:.2f}s")
    logger.info("=" * 60)

    logger.info(f"GLB file generated successfully: {output_path} ({len(meshes)} meshes)")
    return str(output_path)
