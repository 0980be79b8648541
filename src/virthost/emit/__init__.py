"""Translate a resource plan into service-manager units and files."""

from virthost.emit.writer import EmitReport, Emitter, render_links, render_plan

__all__ = ["EmitReport", "Emitter", "render_links", "render_plan"]
