"""
node_labeler

Keeps disk type compatibility labels on cluster nodes in sync with an
externally supplied machine family to disk type mapping.

We keep modules small and well separated:
core contains shared data structures, errors and call context
compat contains the compatibility store and its configuration sources
nodes contains node store adapters
labeler contains machine family derivation and the label reconciler
controller contains the runtime loop and process entrypoint
"""
