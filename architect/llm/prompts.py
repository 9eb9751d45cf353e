# FILE: architect/llm/prompts.py
"""
Versioned prompt templates for the three Gemini capabilities.

Bump a template's version whenever its text changes so persisted artifacts can
be traced back to the prompt that produced them.
"""
from __future__ import annotations

from typing import Dict, Sequence

from architect.versions.models import ComponentSpec


PROMPTS: Dict[str, Dict[str, str]] = {
    "REFINE_SKETCH": {
        "version": "1.0",
        "role": "Expert Technical Illustrator & Software Architect",
        "template": """
# ROLE
You are an expert technical illustrator and software architect.

# TASK
Turn the attached hand-drawn sketch(es) into ONE clean, professional software
architecture diagram that combines every sketch.

# VISUAL STYLE
- Flat, modern vector style, like high-end SaaS documentation
- 2D orthogonal or clean isometric perspective, used consistently
- Cool blues (#0066CC, #3399FF) on neutral greys (#F5F5F5, #E0E0E0) and white
- Accent colours only for status: green #28A745, orange #FD7E14, red #DC3545
- Uniform line weights, 8px rounded container corners, right-angle connectors
- Sans-serif labels with high contrast

# STRUCTURE
- Core components central, sub-components grouped around or inside them
- Standard symbols: cylinder = database, rounded rectangle = service/API,
  cloud = external service, parallelogram = queue/stream, hexagon = load balancer
- Arrows show the direction of data flow; label non-obvious connections

# OUTPUT
A single high-resolution diagram that represents every component in the sketches.
""".strip(),
    },
    "ANALYZE_COMPONENTS": {
        "version": "1.0",
        "role": "Senior Software Architect",
        "template": """
# ROLE
You are a senior software architect.

# TASK
Identify every software component in the attached architecture diagram.

For each component give:
1. name: the label, or a conventional inferred name ("API Gateway", "User Database")
2. description: one or two sentences on its likely role and responsibility

Look for frontends, backend services and APIs, databases and caches, queues and
streams, external integrations, gateways and load balancers, auth services,
object/file storage, CDNs, and monitoring/logging.

# OUTPUT
A JSON array of objects with exactly the keys "name" and "description".
""".strip(),
    },
    "GENERATE_BUILD_PLAN": {
        "version": "1.0",
        "role": "Principal Software Architect",
        "template": """
# ROLE
You are a principal software architect who has shipped production systems at scale.

# TASK
Write an actionable implementation plan for the attached architecture diagram and
the component specifications below.

# REQUIRED SECTIONS
1. Executive Summary
2. Technology Stack (frontend, backend, data layer, infrastructure)
3. Component Implementation Details (one subsection per component: purpose,
   technology, key features, dependencies, implementation notes)
4. API Design (key endpoints, sync vs async communication)
5. Data Models
6. Project Structure (folder tree)
7. Implementation Roadmap (four phases with task checklists)
8. Security Considerations
9. Monitoring & Observability

# COMPONENT SPECIFICATIONS
{specs}

# GUIDELINES
- Be specific about technologies and versions
- Honour every user requirement listed above
- Plan for scalability, error handling and edge cases from the start
""".strip(),
    },
}

# Deterministic generation for every call.
GENERATION_CONFIG = {
    "temperature": 0.0,
    "top_p": 1.0,
    "top_k": 1,
}


def format_specs_for_prompt(specs: Sequence[ComponentSpec]) -> str:
    """Render specs (with user notes) as the build-plan prompt expects."""
    blocks = []
    for spec in specs:
        notes = spec.user_notes.strip() if spec.user_notes else ""
        blocks.append(
            f"### {spec.name}\n"
            f"- **Inferred Role**: {spec.description}\n"
            f"- **User Requirements**: {notes or 'None provided'}"
        )
    return "\n\n".join(blocks)


def build_plan_prompt(specs: Sequence[ComponentSpec]) -> str:
    return PROMPTS["GENERATE_BUILD_PLAN"]["template"].replace("{specs}", format_specs_for_prompt(specs))


def get_prompt_versions() -> Dict[str, str]:
    return {
        "refine_sketch": PROMPTS["REFINE_SKETCH"]["version"],
        "analyze_components": PROMPTS["ANALYZE_COMPONENTS"]["version"],
        "generate_build_plan": PROMPTS["GENERATE_BUILD_PLAN"]["version"],
    }


__all__ = [
    "PROMPTS",
    "GENERATION_CONFIG",
    "format_specs_for_prompt",
    "build_plan_prompt",
    "get_prompt_versions",
]
