"""
Core enumerations for the algedonode hierarchy.

This module defines the light types, activation sources and link types used
throughout the hierarchy for describing components and how signals reach them.
"""

from enum import Enum, auto


class LightType(Enum):
    """
    Which of the two light rows a light sits in.

    Every column of the hierarchy ends in a pair of lights. The pad output 0 of
    a last-row algedonode drives the B light, pad output 1 drives the A light.
    """

    A = "A"
    """Light driven by pad output 1 (and dial line 10 of the last dial)."""

    B = "B"
    """Light driven by pad output 0 (and dial line 9 of the last dial)."""


class ActivationSource(Enum):
    """
    Where an activation of a set-activator or light came from.

    - NONE: not activated this cycle
    - DIAL_OUTPUT: directly from a dial escape line (values 9 and 10)
    - ALGEDONODE: from the pad output of an upstream algedonode
    """

    NONE = auto()
    """No activation recorded since the last clear."""

    DIAL_OUTPUT = auto()
    """Activated by a dial escape line; only valid inside an active branch."""

    ALGEDONODE = auto()
    """Activated through the node-to-node pad chain; always valid."""


class TargetKind(Enum):
    """
    Kind of component a pad-pair output (or escape line) drives.

    Both kinds are gated and cleared the same way; the kind tag tells the
    hierarchy how to complete a successful activation.
    """

    SET_ACTIVATOR = auto()
    """Fan-out point activating a partition of next-row algedonodes."""

    LIGHT = auto()
    """Terminal sink at the bottom of the hierarchy."""


class LinkType(Enum):
    """
    Types of directed links in the hierarchy topology.

    - CONTACT: dial line (values 1-8) to an algedonode contact
    - PAD: pad-pair output to a set-activator or light
    - ESCAPE: dial line 9/10 directly to a set-activator or light
    - PARTITION: set-activator to each algedonode of its partition
    - REPRESENTATIVE: set-activator or light to the node gating escape activations
    """

    CONTACT = auto()
    """Dial line feeding an algedonode contact."""

    PAD = auto()
    """Pad output wired to the next stage."""

    ESCAPE = auto()
    """Dial escape line bypassing the node layer."""

    PARTITION = auto()
    """Set-activator fan-out to a next-row algedonode."""

    REPRESENTATIVE = auto()
    """Back-reference used to gate escape-line activations."""
