"""Studio vocabulary - controlled enums and their service mappings.

Single source of truth for translating user-facing choices (pose, aspect
ratio, mode) into the phrases and codes the generation service accepts.
All lookups are total: every enum member has an entry in every table.
"""

from __future__ import annotations

from enum import Enum


class AppMode(str, Enum):
    """Studio feature selected by the user."""

    OUTFIT_SWAP = "outfit_swap"
    PRODUCT_POSTER = "product_poster"
    VIDEO_GENERATION = "video_generation"


class PoseType(str, Enum):
    """Target pose for an outfit swap.

    ORIGINAL keeps the character's pose unchanged.
    """

    ORIGINAL = "original"
    STANDING_FRONT = "pose_standing_front"
    CONTRAPPOSTO = "pose_contrapposto"
    WALKING = "pose_walking"
    HAND_ON_HIP = "pose_hand_on_hip"
    CROSSED_LEGS = "pose_crossed_legs"
    SITTING_CASUAL = "pose_sitting_casual"
    SHOULDER_TURN = "pose_shoulder_turn"
    THREE_QUARTER = "pose_three_quarter"

    @property
    def label(self) -> str:
        return POSE_LABELS[self]


class AspectRatio(str, Enum):
    """Output aspect ratio offered to the user."""

    RATIO_1_1 = "ratio_1_1"
    RATIO_4_5 = "ratio_4_5"
    RATIO_9_16 = "ratio_9_16"
    RATIO_16_9 = "ratio_16_9"
    RATIO_3_2 = "ratio_3_2"

    @property
    def label(self) -> str:
        return RATIO_LABELS[self]


POSE_LABELS: dict[PoseType, str] = {
    PoseType.ORIGINAL: "Original Pose",
    PoseType.STANDING_FRONT: "Standing Front",
    PoseType.CONTRAPPOSTO: "Contrapposto",
    PoseType.WALKING: "Walking",
    PoseType.HAND_ON_HIP: "Hand on Hip",
    PoseType.CROSSED_LEGS: "Crossed Legs",
    PoseType.SITTING_CASUAL: "Sitting Casual",
    PoseType.SHOULDER_TURN: "Shoulder Turn",
    PoseType.THREE_QUARTER: "Three Quarter",
}

POSE_INSTRUCTIONS: dict[PoseType, str | None] = {
    PoseType.ORIGINAL: None,
    PoseType.STANDING_FRONT: "standing straight facing the camera",
    PoseType.CONTRAPPOSTO: (
        "standing with weight on one leg, body forming a natural curve (contrapposto)"
    ),
    PoseType.WALKING: "walking or mid-step, dynamic movement",
    PoseType.HAND_ON_HIP: "standing with hand on hip, accentuating the silhouette",
    PoseType.CROSSED_LEGS: "position with crossed legs, casual and stylish",
    PoseType.SITTING_CASUAL: "sitting naturally, body slightly leaning",
    PoseType.SHOULDER_TURN: "shoulders turned, head slightly turned to camera",
    PoseType.THREE_QUARTER: "body at a three-quarter angle to show dimensionality",
}

RATIO_LABELS: dict[AspectRatio, str] = {
    AspectRatio.RATIO_1_1: "Square (1:1)",
    AspectRatio.RATIO_4_5: "Portrait (4:5)",
    AspectRatio.RATIO_9_16: "Story (9:16)",
    AspectRatio.RATIO_16_9: "Landscape (16:9)",
    AspectRatio.RATIO_3_2: "Photo (3:2)",
}

# Image models accept 1:1, 3:4, 4:3, 9:16, 16:9
IMAGE_RATIO_CODES: dict[AspectRatio, str] = {
    AspectRatio.RATIO_1_1: "1:1",
    AspectRatio.RATIO_4_5: "3:4",  # closest vertical approximation
    AspectRatio.RATIO_9_16: "9:16",
    AspectRatio.RATIO_16_9: "16:9",
    AspectRatio.RATIO_3_2: "4:3",  # closest horizontal approximation
}

# Video models accept only 16:9 and 9:16
VIDEO_RATIO_CODES: dict[AspectRatio, str] = {
    AspectRatio.RATIO_1_1: "16:9",
    AspectRatio.RATIO_4_5: "9:16",
    AspectRatio.RATIO_9_16: "9:16",
    AspectRatio.RATIO_16_9: "16:9",
    AspectRatio.RATIO_3_2: "16:9",
}

RATIO_PHRASES: dict[AspectRatio, str] = {
    AspectRatio.RATIO_1_1: "square (1:1)",
    AspectRatio.RATIO_4_5: "portrait (4:5)",
    AspectRatio.RATIO_9_16: "vertical full screen (9:16)",
    AspectRatio.RATIO_16_9: "cinematic landscape (16:9)",
    AspectRatio.RATIO_3_2: "commercial horizontal (3:2)",
}

IMAGE_RATIO_CODE_SET = frozenset(IMAGE_RATIO_CODES.values())
VIDEO_RATIO_CODE_SET = frozenset(VIDEO_RATIO_CODES.values())


def pose_instruction(pose: PoseType) -> str | None:
    """Natural-language pose fragment, or None when the pose is kept."""
    return POSE_INSTRUCTIONS[pose]


def image_ratio_code(ratio: AspectRatio) -> str:
    """Aspect ratio code accepted by the image-edit model."""
    return IMAGE_RATIO_CODES[ratio]


def video_ratio_code(ratio: AspectRatio) -> str:
    """Aspect ratio code accepted by the video model (16:9 or 9:16)."""
    return VIDEO_RATIO_CODES[ratio]


def ratio_phrase(ratio: AspectRatio) -> str:
    """Composition phrase injected into generated instructions."""
    return RATIO_PHRASES[ratio]
