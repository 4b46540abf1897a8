"""Tools that ship with the engine."""

from .web_fetch import WebFetchTool, extract_main_content, looks_like_html

__all__ = ["WebFetchTool", "extract_main_content", "looks_like_html"]
