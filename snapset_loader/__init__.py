from .application.services.pipeline_context import PipelineContext, init_context
from .application.services.snapset_pipeline import PipelineResult, SnapsetPipeline
from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("snapset-loader")
except PackageNotFoundError:
    # Package is not installed (e.g. during local development)
    __version__ = "0.1.0-local"

__all__ = [
    "PipelineContext",
    "PipelineResult",
    "SnapsetPipeline",
    "init_context",
    "__version__",
]
