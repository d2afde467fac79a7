"""
Core cross-cutting pieces: the exception taxonomy shared by the engine, relay
client and CLI.
"""
