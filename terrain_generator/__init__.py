# terrain_generator/__init__.py

# Public API of the terrain package.

from .params import TerrainParameters, Topology, GenerationType, ViewMode
from .generator import TerrainGenerator, SampleResult, ClimateResult
from .biomes import Material, classify_biomes, biome_materials, get_biome_material
from .mesh import PreviewMesh, build_preview_mesh, save_preview_images
from .voxels import (
    VoxelBatchWriter, InMemoryVoxelStore, NpzVoxelStore, VoxelRegion,
    VoxelWriteError, GenerationCancelled,
)
from .script_export import generate_voxel_script

__all__ = [
    "TerrainParameters", "Topology", "GenerationType", "ViewMode",
    "TerrainGenerator", "SampleResult", "ClimateResult",
    "Material", "classify_biomes", "biome_materials", "get_biome_material",
    "PreviewMesh", "build_preview_mesh", "save_preview_images",
    "VoxelBatchWriter", "InMemoryVoxelStore", "NpzVoxelStore", "VoxelRegion",
    "VoxelWriteError", "GenerationCancelled",
    "generate_voxel_script",
]
