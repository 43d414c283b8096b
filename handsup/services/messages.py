"""
Outgoing SOS text.

The templates are written for someone who cannot make a voice call: the
message has to carry everything a responder needs.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

EMERGENCY_NUMBER = "000"
APP_NAME = "HandsUpSOS"


class EmergencyTemplate(BaseModel):
    emoji: str
    title: str
    message: str


CAMPING_TEMPLATES: List[EmergencyTemplate] = [
    EmergencyTemplate(
        emoji="🏕️",
        title="Lost While Hiking",
        message="I am lost while hiking and need immediate assistance. I may be injured or unable to find my way back to the trail.",
    ),
    EmergencyTemplate(
        emoji="🦴",
        title="Broken Bone/Injury",
        message="I have suffered a serious injury (broken bone, sprain, or other injury) and cannot move safely. I need medical assistance.",
    ),
    EmergencyTemplate(
        emoji="🐍",
        title="Snake Bite",
        message="I have been bitten by a snake. I need immediate medical attention and help getting to safety.",
    ),
    EmergencyTemplate(
        emoji="🌊",
        title="Water Emergency",
        message="I am in trouble near water (river, lake, ocean) and need immediate rescue assistance.",
    ),
    EmergencyTemplate(
        emoji="🔥",
        title="Fire Emergency",
        message="There is a fire emergency in my area. I need help evacuating or the fire needs immediate attention.",
    ),
    EmergencyTemplate(
        emoji="🌪️",
        title="Weather Emergency",
        message="I am caught in severe weather conditions (storm, flood, extreme heat/cold) and need immediate assistance.",
    ),
    EmergencyTemplate(
        emoji="🚑",
        title="Medical Emergency",
        message="I am experiencing a medical emergency (chest pain, difficulty breathing, severe bleeding, etc.) and need immediate medical help.",
    ),
    EmergencyTemplate(
        emoji="🚨",
        title="General Emergency",
        message="I am in a general emergency situation and need immediate assistance. Please help me get to safety.",
    ),
]


def find_template(title: str) -> Optional[EmergencyTemplate]:
    wanted = title.strip().casefold()
    for template in CAMPING_TEMPLATES:
        if template.title.casefold() == wanted:
            return template
    return None


def format_message_time(moment: datetime) -> str:
    # Australian day-first order
    return moment.strftime("%d/%m/%Y %H:%M:%S")


def build_emergency_message(
    template: EmergencyTemplate,
    user_name: str,
    location: str,
    now: Optional[datetime] = None,
) -> str:
    """Render the SOS text sent to every emergency contact."""
    name = user_name.strip() or "Emergency Contact"
    moment = now or datetime.now().astimezone()

    lines = [
        "🚨 EMERGENCY SOS 🚨",
        "",
        f"{template.emoji} {template.title}",
        template.message,
        "",
        f"Person: {name}",
        f"Location: {location}",
        f"Time: {format_message_time(moment)}",
        "",
        f"This is an automated emergency message from {APP_NAME} app.",
        f"Please call emergency services ({EMERGENCY_NUMBER}) immediately.",
        "",
        "If you receive this message, please:",
        f"1. Call {EMERGENCY_NUMBER} for emergency services",
        "2. Provide the location coordinates above",
        "3. Contact the person if possible",
    ]
    return "\n".join(lines)
