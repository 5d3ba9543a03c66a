"""
Runtimes
========

Bridges performing the I/O requested by coroutines on a real transport.

- std: blocking sockets (plain or ssl.SSLSocket)
- aio: anyio byte streams (plain or TLSStream)
"""
