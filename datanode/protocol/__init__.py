"""Statements exchanged with the master, encoded as length-prefixed MessagePack."""