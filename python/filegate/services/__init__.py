"""Gateway services.

Read path (files), delete path (deletion) and the components they compose:
range arithmetic, identifier resolution, backend adapters, the range
compatibility shim, access policy and response assembly. Route handlers call
exactly one of serve_file or delete_file.
"""
