"""Use-case / operations layer.

Interactive editing logic shared by the edit views: viewport zoom/pan,
pan gestures, crop selection debouncing, display-to-source coordinate mapping,
and the single-in-flight edit dispatcher.

Widgets live in the top-level `reaper.ui_*` modules; nothing here paints.
"""
