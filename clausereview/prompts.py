"""Prompt text for clause reviews.

Adapters treat the output as an opaque string. Keyed by review type
value so this module stays free of domain imports.
"""

DEFAULT_SYSTEM_PROMPT = (
    "You are an experienced contract lawyer. Review contract clauses precisely, "
    "cite the exact wording you are concerned about, and answer with clear headings "
    "and bullet points."
)

SYSTEM_PROMPTS = {
    "groq": DEFAULT_SYSTEM_PROMPT,
    "cerebras": DEFAULT_SYSTEM_PROMPT,
    "sambanova": DEFAULT_SYSTEM_PROMPT,
}

TEMPLATES = {
    "RISKS": (
        "Analyze this contract clause for legal and business risks, loopholes and "
        "enforcement problems, then recommend mitigations.\n\n"
        'Contract Clause:\n"""\n{clause}\n"""'
    ),
    "IMPROVEMENTS": (
        "Suggest concrete improvements to this contract clause covering clarity, "
        "legal effectiveness and protection of interests.\n\n"
        'Contract Clause:\n"""\n{clause}\n"""'
    ),
    "COMPLETENESS": (
        "Check this contract clause for completeness: missing elements, undefined "
        "terms and incomplete conditions.\n\n"
        'Contract Clause:\n"""\n{clause}\n"""'
    ),
    "SIMPLIFICATION": (
        "Rewrite this contract clause in plain language while keeping its legal "
        "meaning, and list the key terms you preserved.\n\n"
        'Contract Clause:\n"""\n{clause}\n"""'
    ),
    "AMBIGUITIES": (
        "Identify ambiguous wording in this contract clause, explain the competing "
        "readings and propose clearer wording.\n\n"
        'Contract Clause:\n"""\n{clause}\n"""'
    ),
}


def get_system_prompt(provider_name):
    return SYSTEM_PROMPTS.get(provider_name, DEFAULT_SYSTEM_PROMPT)


def build_prompt(request, provider_name):
    """Render the template for ``request.kind``. Raises KeyError for unknown kinds."""
    kind = getattr(request.kind, "value", request.kind)
    template = TEMPLATES[kind]
    # Braces in the clause must not be treated as format fields.
    return template.replace("{clause}", request.text.strip())
