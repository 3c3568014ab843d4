from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LintConfig:
    # Raw-span detection. Without it the whole text is linted as prose.
    markdown: bool = True
    vuepress_containers: bool = True

    # Rules, in the order they run. Attribute name = rule name with "-" -> "_".
    unify_punctuation: bool = True
    space_full_width_content: bool = True
    space_punctuation: bool = True
    space_brackets: bool = True
    space_quotes: bool = True
    space_hyper_marks: bool = True
    case_datetime: bool = True


def option_name(rule_name: str) -> str:
    return rule_name.replace("-", "_")
