EXTRACTION_SYSTEM_PROMPT = """You are an epistemic analyst. Analyze the following text and extract a structured knowledge graph using the Toulmin argumentation model.

For each piece of content, identify:
1. **Claims**: Assertions, arguments, or main points
2. **Evidence**: Data, facts, or observations that support or refute claims
3. **Definitions**: Key concept definitions
4. **Sources**: Referenced external sources
5. **Entities**: Named persons or referenced works

For relationships, classify each link as one of:
- "supports": Evidence that backs a claim
- "refutes": Evidence that contradicts a claim
- "defines": A definition for a concept
- "caused_by": Causal relationship
- "derived_from": One idea derived from another
- "example_of": An example illustrating a concept
- "part_of": Part-whole relationship

Relationship indices refer to positions in the "claims" list only.

Return ONLY valid JSON in this exact format:
{
  "claims": [
    { "text": "...", "qualifier": 0.8, "type": "Claim" }
  ],
  "relationships": [
    { "source_index": 0, "target_index": 1, "type": "supports", "weight": 0.9 }
  ],
  "entities": [
    { "name": "...", "type": "Person" }
  ]
}

The qualifier field (0.0-1.0) represents how confident you are about the claim's validity.
The weight field (0.0-1.0) represents the strength of the relationship."""


SUMMARIZE_SYSTEM_PROMPT = """Summarize the following text concisely. Identify the key claim, its grounds (evidence), and your confidence level (0.0-1.0).

Return JSON:
{
  "summary": "...",
  "claim": "...",
  "grounds": ["evidence 1", "evidence 2"],
  "qualifier": 0.8
}"""


LINK_SUGGEST_SYSTEM_PROMPT = """Given the following nodes from a knowledge graph, suggest relationships between them.

For each suggested link, specify:
- source_id and target_id (use the provided IDs)
- type: one of "supports", "refutes", "defines", "caused_by", "derived_from", "example_of", "part_of"
- weight: 0.0-1.0 confidence
- reason: why this link should exist

Return JSON:
{
  "suggestions": [
    { "source_id": "...", "target_id": "...", "type": "supports", "weight": 0.8, "reason": "..." }
  ]
}"""

ARGUMENTATION_CHECK_SYSTEM_PROMPT = """Analyze the following claim and its connected evidence. Evaluate:
1. Are the grounds sufficient?
2. Are there potential rebuttals?
3. What qualifiers should be applied?

Return JSON:
{
  "assessment": "strong" | "moderate" | "weak",
  "missing_evidence": ["..."],
  "potential_rebuttals": ["..."],
  "suggested_qualifier": 0.7,
  "reasoning": "..."
}"""


def extraction_user_prompt(text: str) -> str:
    return f"TEXT TO ANALYZE:\n{text}"


def summarize_user_prompt(text: str) -> str:
    return f"TEXT:\n{text}"


def link_suggest_user_prompt(nodes) -> str:
    """
    One block per node, keyed by the id suggestions must refer to.
    """
    blocks = [
        f"- id: {n.id}\n  type: {n.type.value}\n  title: {n.title}\n  content: {n.content}"
        for n in nodes
    ]
    return "NODES:\n" + "\n".join(blocks)


def argumentation_user_prompt(claim, links) -> str:
    """
    The claim followed by each supporting or refuting node and its weight.
    """
    lines = [f"CLAIM: {claim.title}"]
    if claim.content:
        lines.append(claim.content)
    lines.append("")
    lines.append("EVIDENCE:")
    if not links:
        lines.append("(No connected evidence)")
    for relationship, evidence, weight in links:
        lines.append(f"- [{relationship.value}, weight {weight:.2f}] {evidence.title}: {evidence.content}")
    return "CLAIM AND EVIDENCE:\n" + "\n".join(lines)
