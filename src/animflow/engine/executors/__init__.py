"""Node executors, one module per node family.

Every executor has the signature `(node, context, connections) -> None` and
publishes through ExecutionContext.set_node_output(). Dispatch over node
types lives in animflow.engine.executors.dispatch.
"""
