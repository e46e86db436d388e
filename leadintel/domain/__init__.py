"""Domain Layer: models, ports and events.

Holds the value objects exchanged with the provider, the analysis result
types and the abstract interfaces implemented by the infrastructure layer.
Nothing here performs I/O.
"""
