"""frameshift analyzers - read-only passes over a parsed module.

Analyzers:
- AST Parser: TSX parsing and tree navigation via tree-sitter
- Bindings: state, effect and event handler collection
- Classifier: priority-ordered detection of the module's shape
- Dependency: package.json reconciliation for surviving imports
"""

from frameshift.analyzers.ast_parser import ParserUnavailableError, TSXParser
from frameshift.analyzers.bindings import BindingCollector
from frameshift.analyzers.classifier import Classification, SourceClassifier
from frameshift.analyzers.dependency import DependencyResolver, PackageManifest

__all__ = [
    "BindingCollector",
    "Classification",
    "DependencyResolver",
    "PackageManifest",
    "ParserUnavailableError",
    "SourceClassifier",
    "TSXParser",
]
