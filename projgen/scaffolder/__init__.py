"""projgen scaffolder -- turns a template directory into a project.

Quick usage::

    from projgen.config import GenerateOptions
    from projgen.scaffolder import ProjectGenerator

    options = GenerateOptions(
        template_root="path/to/template",
        destination="/tmp/output",
        name="my-project",
        defines={"license": "MIT"},
        silent=True,
    )
    project_path = ProjectGenerator(options).generate()
"""

from projgen.scaffolder.generator import ProjectGenerator, generate
from projgen.scaffolder.matcher import PathMatcher, SelectionRuleSet
from projgen.scaffolder.templates import TemplateRenderer
from projgen.scaffolder.walker import TreeWalker, expand

__all__ = [
    "PathMatcher",
    "ProjectGenerator",
    "SelectionRuleSet",
    "TemplateRenderer",
    "TreeWalker",
    "expand",
    "generate",
]
