"""
Unit tests for SOS message composition.
"""

from datetime import datetime

from handsup.services.messages import CAMPING_TEMPLATES, build_emergency_message, find_template


NOW = datetime(2025, 10, 19, 14, 5, 9)


def test_templates_are_unique():
    titles = [t.title for t in CAMPING_TEMPLATES]
    assert len(titles) == 8
    assert len(set(titles)) == len(titles)


def test_find_template_ignores_case():
    assert find_template("snake bite").emoji == "🐍"
    assert find_template("  Fire Emergency ").title == "Fire Emergency"
    assert find_template("Alien Abduction") is None


def test_message_layout():
    template = find_template("Snake Bite")
    lines = build_emergency_message(template, "Sam", "-33.712800, 150.311900", now=NOW).split("\n")
    assert lines[0] == "🚨 EMERGENCY SOS 🚨"
    assert lines[2] == "🐍 Snake Bite"
    assert lines[3] == template.message
    assert "Person: Sam" in lines
    assert "Location: -33.712800, 150.311900" in lines
    assert "Time: 19/10/2025 14:05:09" in lines
    assert "Please call emergency services (000) immediately." in lines
    assert lines[-3:] == [
        "1. Call 000 for emergency services",
        "2. Provide the location coordinates above",
        "3. Contact the person if possible",
    ]


def test_blank_name_falls_back():
    message = build_emergency_message(CAMPING_TEMPLATES[0], "   ", "Unknown", now=NOW)
    assert "Person: Emergency Contact" in message.split("\n")
