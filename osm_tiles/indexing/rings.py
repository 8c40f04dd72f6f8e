"""
Ring reconstruction

Stitches the member ways of a relation into closed (or dangling) chains of
node IDs that can be filled or stroked.

Algorithm (greedy segment chaining):
1. Resolve the relation's way members; unknown IDs and ways with fewer than
   two nodes are skipped.
2. Index every way by its first and last node.
3. Seed a ring with the first unconsumed way and keep appending an unconsumed
   way that touches the ring's last node, reversing it when it runs the other
   way. When no way touches the tail the ring is finished and the next
   unconsumed way seeds a new ring.

Candidates sharing an endpoint are taken in ascending way ID order and new
rings are seeded in member order, so output is reproducible between runs.
"""

from collections import defaultdict
from typing import Dict, List, Mapping, Set

from loguru import logger

from ..models import MemberKind, Relation, Ring, Way
from .classifier import classify_way


class RingReconstructor:
    """Rebuilds polygon rings from relation member ways"""

    def __init__(self, ways_by_id: Mapping[int, Way]):
        self.ways_by_id = ways_by_id

    def resolve_ways(self, relation: Relation) -> List[Way]:
        """Member ways that exist and have at least two nodes, deduplicated, in member order"""
        ways = []
        seen = set()
        for member in relation.members:
            if member.kind is not MemberKind.WAY:
                continue
            way = self.ways_by_id.get(member.ref)
            if way is None:
                logger.debug(f"Relation {relation.id}: member way {member.ref} not found, skipping")
                continue
            if len(way.node_ids) < 2:
                logger.debug(f"Relation {relation.id}: way {way.id} has {len(way.node_ids)} node(s), skipping")
                continue
            if way.id in seen:
                continue
            seen.add(way.id)
            ways.append(way)
        return ways

    def reconstruct(self, relation: Relation) -> List[Ring]:
        """
        Stitch a relation's ways into rings.

        Args:
            relation: Relation whose way members describe one or more outlines

        Returns:
            Rings in construction order; empty if no member way resolves
        """
        ways = self.resolve_ways(relation)
        if not ways:
            logger.debug(f"Relation {relation.id}: no drawable member ways")
            return []

        by_id = {way.id: way for way in ways}

        endpoints: Dict[int, Set[int]] = defaultdict(set)
        for way in ways:
            endpoints[way.first_node].add(way.id)
            endpoints[way.last_node].add(way.id)

        # dict keeps member order for seeding new rings
        pending = dict.fromkeys(way.id for way in ways)

        rings = []
        ring = self._start_ring(ways[0])
        del pending[ways[0].id]
        way_count = 1

        while pending:
            tail = ring.node_ids[-1]
            candidates = [way_id for way_id in endpoints.get(tail, ()) if way_id in pending]

            if candidates:
                way = by_id[min(candidates)]
                del pending[way.id]
                if way.first_node == tail:
                    ring.node_ids.extend(way.node_ids[1:])
                else:
                    ring.node_ids.extend(reversed(way.node_ids[:-1]))
                way_count += 1
                logger.debug(f"Relation {relation.id}: appended way {way.id} at node {tail}")
            else:
                rings.append(self._finish_ring(ring, way_count))
                seed = by_id[next(iter(pending))]
                del pending[seed.id]
                ring = self._start_ring(seed)
                way_count = 1
                logger.debug(f"Relation {relation.id}: new ring seeded with way {seed.id}")

        rings.append(self._finish_ring(ring, way_count))
        return rings

    @staticmethod
    def _start_ring(way: Way) -> Ring:
        return Ring(category=classify_way(way), node_ids=list(way.node_ids), way_id=way.id)

    @staticmethod
    def _finish_ring(ring: Ring, way_count: int) -> Ring:
        # Only single-way rings keep the originating way
        if way_count > 1:
            ring.way_id = None
        return ring


def extract_rings(relation: Relation, ways_by_id: Mapping[int, Way]) -> List[Ring]:
    """Convenience wrapper around RingReconstructor"""
    return RingReconstructor(ways_by_id).reconstruct(relation)
