"""
Worker module.
Contains the consumer process entry point and the message handler registry.
"""
