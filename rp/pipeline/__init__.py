"""Release pipeline: trigger, stages, artifact store, registry and workflow."""
