"""Message framing, the connection to the master and request handlers."""