"""Package initialization for criteo-shipper.

Maps normalized analytics events to Criteo s2s payloads and ships them. The
stable entry points are `mapper.map_event` for pure mapping and
`shipper.CriteoShipper` for validated dispatch.
"""

__all__ = []
