"""服务模块."""

from print_constructor.services.exporter import ExportPipeline, ImageLoader, RenderJob
from print_constructor.services.pricing import PriceBuilder, tier_rate
from print_constructor.services.project_store import ProjectStore
from print_constructor.services.rasterizer import PillowRasterizer, Rasterizer
from print_constructor.services.template_catalog import (
    FileTemplateSource,
    RemoteTemplateSource,
    TemplateSource,
    merge_templates,
)

__all__ = [
    "ExportPipeline",
    "ImageLoader",
    "RenderJob",
    "PriceBuilder",
    "tier_rate",
    "ProjectStore",
    "PillowRasterizer",
    "Rasterizer",
    "FileTemplateSource",
    "RemoteTemplateSource",
    "TemplateSource",
    "merge_templates",
]
