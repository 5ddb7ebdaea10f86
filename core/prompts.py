# =============================================================================
# core/prompts.py  —  Prompt templates (the "code-review" prompt)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Holds the text templates this server offers through MCP prompts/get and
#   renders them with the caller's arguments.
#
# SUBSTITUTION RULES:
#   1. Placeholders are {name}.  Substitution is a SINGLE pass over the
#      template, so an argument value that itself contains "{reviewFocus}"
#      is inserted literally and never expanded again.
#   2. Every placeholder must be declared as a PromptArgument.  A template
#      referencing an undeclared name fails when the template is built, not
#      when a client asks for it.
#   3. An optional argument the caller omits is replaced by its fallback
#      string, so no "{...}" placeholder ever leaks into the output.
# =============================================================================

import re
from dataclasses import dataclass
from typing import Mapping, Optional

from core.errors import ValidationError

_PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass(frozen=True)
class PromptArgument:
    name: str
    description: str = ""
    required: bool = True
    fallback: str = ""


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    description: str
    template: str
    arguments: tuple = ()

    def __post_init__(self):
        declared = {arg.name for arg in self.arguments}
        used = set(_PLACEHOLDER.findall(self.template))
        undeclared = used - declared
        if undeclared:
            raise ValueError(
                f"Prompt '{self.name}' uses undeclared placeholders: {sorted(undeclared)}"
            )

    def render(self, values: Optional[Mapping[str, Optional[str]]] = None) -> str:
        values = dict(values or {})
        resolved: dict[str, str] = {}
        problems: dict[str, str] = {}

        for arg in self.arguments:
            value = values.pop(arg.name, None)
            if value is None or (isinstance(value, str) and not value.strip() and not arg.required):
                if arg.required:
                    problems[arg.name] = "required argument is missing"
                    continue
                value = arg.fallback
            elif not isinstance(value, str):
                problems[arg.name] = "expected string"
                continue
            resolved[arg.name] = value

        for name in values:
            problems[name] = "unknown argument"
        if problems:
            raise ValidationError(problems)

        return _PLACEHOLDER.sub(lambda match: resolved[match.group(1)], self.template)

    def messages(self, values: Optional[Mapping[str, Optional[str]]] = None) -> dict:
        """MCP prompts/get payload: one user message holding the rendered text."""
        return {
            "messages": [
                {"role": "user", "content": {"type": "text", "text": self.render(values)}}
            ]
        }


# =============================================================================
# code-review
# =============================================================================
DEFAULT_REVIEW_FOCUS = "general code quality"

CODE_REVIEW = PromptTemplate(
    name="code-review",
    description="Request Code Review",
    template="""Please analyze the following code and provide a detailed review.

Review focus: {reviewFocus}

1. Code quality assessment
2. Possible improvements
3. Best-practice recommendations
4. Security considerations

Code to review:

```
{code}
```""",
    arguments=(
        PromptArgument("code", "The code to review"),
        PromptArgument(
            "reviewFocus",
            "What the review should concentrate on (optional)",
            required=False,
            fallback=DEFAULT_REVIEW_FOCUS,
        ),
    ),
)

PROMPTS = (CODE_REVIEW,)
