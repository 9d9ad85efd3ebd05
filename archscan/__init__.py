"""Architecture recovery for PHP projects.

This package reverse-engineers a Symfony-style source tree into an
architecture model:
- Component classification (controllers, entities, repositories, services,
  event listeners and subscribers)
- Relation inference from inheritance, constructor injection,
  instantiation and static calls
- JSON export of the resulting component graph
"""

__version__ = "0.1.0"
