"""
System prompt composition.

``compose_system_prompt`` prefixes a persona's stored prompt with the user's
workspace profile; ``build_persona_system_prompt`` renders that stored prompt
from the answers given in the persona creation wizard.
"""
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

NO_CONTEXT = "No user context available."
BASIC_PROFILE = "Basic user profile available."

# (label, workspace attribute, list-valued)
PROFILE_FIELDS: Tuple[Tuple[str, str, bool], ...] = (
    ("Name", "name", False),
    ("Age", "age", False),
    ("Gender", "gender", False),
    ("Interests", "interests", True),
    ("Goals", "goals", True),
    ("Personality Type", "personality_type", False),
    ("Communication Style", "preferred_communication", True),
)

PERSONALITY_MAP = {
    "romantic": "affectionate and loving",
    "playful": "fun, teasing, and full of energy",
    "caring": "compassionate and nurturing",
    "mysterious": "intriguing and secretive",
    "adventurous": "excited about exploring and trying new things",
    "supportive": "always there to listen and encourage",
    "humorous": "funny and entertaining, keeps the mood light",
    "confident": "bold and self-assured in conversations",
}

RESPONSE_STYLE_MAP = {
    "flirty": "playful, teasing, and romantic",
    "caring": "compassionate and empathetic",
    "casual": "relaxed and conversational",
    "detailed": "expressive and thoughtful replies",
    "humorous": "funny, witty, and lighthearted",
    "mysterious": "intriguing and secretive with hints of depth",
    "enthusiastic": "energetic, positive, and engaging",
}

EXPERTISE_MAP = {
    "relationships": "relationships and dating advice",
    "emotions": "emotional support and understanding feelings",
    "flirting": "flirting and romantic interactions",
    "lifestyle": "lifestyle topics and hobbies",
    "travel": "travel experiences and adventure",
    "fitness": "health, wellness, and fitness",
    "entertainment": "movies, music, and entertainment",
    "self_growth": "personal growth and confidence building",
}

DEFAULT_RESPONSE_STYLE = "casual"
UNKNOWN_RESPONSE_STYLE = "conversational"


def _field(workspace: Union[Mapping[str, Any], Any], name: str) -> Any:
    if isinstance(workspace, Mapping):
        return workspace.get(name)
    return getattr(workspace, name, None)


def _render(value: Any, is_list: bool) -> Optional[str]:
    """Text for one profile value, or None when the field counts as absent"""
    if value is None:
        return None
    if isinstance(value, (int, float)) and not value:
        # age 0 counts as unset
        return None
    if is_list and not isinstance(value, str):
        items = [str(item) for item in value if item not in (None, "")]
        return ", ".join(items) if items else None
    text = str(value)
    return text if text.strip() else None


def profile_lines(workspace: Union[Mapping[str, Any], Any]) -> List[str]:
    lines = []
    for label, attribute, is_list in PROFILE_FIELDS:
        rendered = _render(_field(workspace, attribute), is_list)
        if rendered is not None:
            lines.append(f"{label}: {rendered}")
    return lines


def compose_system_prompt(
    workspace: Optional[Union[Mapping[str, Any], Any]],
    persona_system_prompt: Optional[str] = None,
) -> str:
    """Build the system prompt sent with every completion request.

    Args:
        workspace: workspace row (or mapping) of the active user, None when not found
        persona_system_prompt: the persona's own prompt, appended unmodified

    Returns:
        One ``Label: value`` line per present profile field, then the persona prompt
    """
    if workspace is None:
        context = NO_CONTEXT
    else:
        lines = profile_lines(workspace)
        context = "\n".join(lines) if lines else BASIC_PROFILE

    if persona_system_prompt:
        return f"{context}\n{persona_system_prompt}"
    return context


def _describe(ids: Iterable[str], mapping: Mapping[str, str]) -> str:
    return ", ".join(mapping.get(item, item) for item in ids)


def build_persona_system_prompt(
    name: str,
    role: str,
    personality: Iterable[str] = (),
    expertise: Iterable[str] = (),
    response_style: Optional[str] = None,
) -> str:
    """Render a custom persona's prompt from its wizard answers"""
    personality_desc = _describe(personality, PERSONALITY_MAP)
    expertise_desc = _describe(expertise, EXPERTISE_MAP)
    response_desc = RESPONSE_STYLE_MAP.get(response_style or DEFAULT_RESPONSE_STYLE, UNKNOWN_RESPONSE_STYLE)

    return (
        f"You are {name}, a {role} with the following personality traits: {personality_desc}.\n"
        f"Your communication style is {response_desc}, and you are especially knowledgeable about {expertise_desc}.\n"
        "\n"
        "Core Guidelines:\n"
        f"- Always embody {name} as the {role}; never break character or reveal you are an AI.\n"
        f"- Stay consistent with your personality traits and speaking style ({response_desc}).\n"
        "- Be engaging, empathetic, and authentic. Your goal is to build a real connection with the user.\n"
        f"- Show curiosity and enthusiasm for topics you know ({expertise_desc}).\n"
        "- Adapt your tone and depth based on the flow of conversation, just like a natural human interaction.\n"
        "- Avoid robotic or overly formal phrasing; keep responses natural and relatable.\n"
        "- Always prioritize connection, trust, and user comfort.\n"
        "\n"
        f"Remember: Every response should reinforce your identity as {name}, the {role}, "
        "while reflecting your personality and expertise."
    )
