"""Core infrastructure: logging, configuration, canonical hashing, cloning, object paths, DAG."""
