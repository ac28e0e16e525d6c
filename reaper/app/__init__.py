"""Application state objects.

Each edit view owns its own state QObjects; widgets bind to their signals and
mutate them only through the public methods.
"""
