"""Hypothesis strategies for property-based testing."""

from hypothesis import strategies as st

from vesper.models.actions import Role
from vesper.models.pipeline import ContentType, EmotionalTrigger, TargetDuration, TriggerData
from vesper.registry.catalog import CATALOG

topics = st.text(
    alphabet=st.characters(categories=("L", "N", "Zs"), max_codepoint=0x17F),
    min_size=0,
    max_size=60,
)

model_refs = st.sampled_from(
    [(p.provider_id, m.model_id) for p in CATALOG for m in p.models]
)

roles = st.lists(st.sampled_from([r.value for r in Role] + ["telepathy", ""]), max_size=5)

transitions = st.lists(
    st.sampled_from(
        ["advance", "back", "draft", "approve", "edit", "clear_topic", "restore_topic"]
    ),
    min_size=1,
    max_size=25,
)


@st.composite
def generate_trigger(draw):
    """Generate random valid TriggerData."""
    return TriggerData(
        topic=draw(topics),
        content_type=draw(st.sampled_from(list(ContentType))),
        target_duration=draw(st.sampled_from(list(TargetDuration))),
        emotional_triggers=draw(st.sets(st.sampled_from(list(EmotionalTrigger)), max_size=4)),
        special_notes=draw(st.text(max_size=40)),
    )


@st.composite
def generate_poll_sequence(draw):
    """A render service script: non-terminal statuses, optionally ending in a terminal one."""
    pending = draw(st.lists(st.sampled_from(["queued", "processing", "rendering", "transport"]), max_size=12))
    ending = draw(
        st.sampled_from([None, ("done", "https://cdn.example/v.mp4"), ("done", None), ("error", None), ("failed", None)])
    )
    return pending, ending
