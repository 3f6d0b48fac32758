"""Sharded in-memory database engine with background garbage collection and binary snapshots."""