"""
verdocs - versioned documentation publishing.

Builds the documentation of a tagged revision into ``vX.Y.Z/`` on a
dedicated branch (``gh-pages`` by default), keeps every earlier version,
points ``latest/`` at the highest version and commits only when something
changed.

Entry points::

    verdocs publish v1.2.3          # CLI
    PublishOrchestrator(repo, config).run("v1.2.3")
"""

__version__ = "0.1.0"
