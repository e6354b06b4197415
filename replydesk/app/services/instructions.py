"""Turns what the user asked for into the instruction sent to the AI."""
from dataclasses import dataclass
from typing import Optional, Literal, Callable
import logging

from ..schemas.reply import RefinementOptions, GenerateReplyRequest

log = logging.getLogger(__name__)

DEFAULT_INSTRUCTION = "Generate a reply to this email."
REFINE_FALLBACK = "Refine this reply to make it better."

TONE_DESCRIPTIONS = {
    'professional': 'professional and business-appropriate',
    'friendly': 'friendly and warm',
    'casual': 'casual and relaxed',
    'formal': 'formal and respectful',
    'warm': 'warm and caring',
    'direct': 'direct and to-the-point',
}

LENGTH_DESCRIPTIONS = {
    'concise': 'make it concise and brief',
    'medium': 'use a balanced length',
    'detailed': 'make it detailed and comprehensive',
}

# 3 is neutral and never produces a clause
FORMALITY_DESCRIPTIONS = {
    1: 'very casual language',
    2: 'casual language',
    4: 'formal language',
    5: 'very formal language',
}

NEUTRAL_FORMALITY = 3


def build_instruction_from_options(options: RefinementOptions) -> str:
    if options.custom_instruction:
        return options.custom_instruction

    parts = []
    if options.tone in TONE_DESCRIPTIONS:
        parts.append(f"{TONE_DESCRIPTIONS[options.tone]} tone")
    if options.length in LENGTH_DESCRIPTIONS:
        parts.append(LENGTH_DESCRIPTIONS[options.length])
    if options.formality is not None and options.formality != NEUTRAL_FORMALITY:
        desc = FORMALITY_DESCRIPTIONS.get(options.formality)
        if desc:
            parts.append(f"use {desc}")
    # only high urgency changes the wording; low and normal are left to the model
    if options.urgency == 'high':
        parts.append('convey appropriate urgency')

    if not parts:
        return REFINE_FALLBACK
    sentence = ', '.join(parts)
    return sentence[0].upper() + sentence[1:] + '.'


def template_instruction(template_text: str) -> str:
    return (
        "Use this template as the basis for your reply, adapting it to respond "
        f"to the specific email context: \"{template_text}\""
    )


@dataclass(frozen=True)
class ResolvedInstruction:
    source: Literal['template', 'instruction', 'options', 'fallback']
    text: str


def resolve_instruction(
    request: GenerateReplyRequest,
    lookup_template: Callable[[int], Optional[str]],
) -> ResolvedInstruction:
    """Pick the single instruction source for a generate request.

    Order: selected quick-reply template, free-text instruction, refinement
    options, then the generic fallback. ``lookup_template`` returns the text of
    an active template or None.
    """
    if request.template_id:
        text = lookup_template(request.template_id)
        if text:
            return ResolvedInstruction('template', template_instruction(text))
        log.warning("Quick reply template unavailable, falling through", extra={"template_id": request.template_id})
    if request.instruction and request.instruction.strip():
        return ResolvedInstruction('instruction', request.instruction)
    opts = request.refinement_options
    if opts is not None and not opts.is_empty():
        return ResolvedInstruction('options', build_instruction_from_options(opts))
    return ResolvedInstruction('fallback', DEFAULT_INSTRUCTION)
