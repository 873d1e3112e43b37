"""Fixed Go templates for generated distribution sources.

Each render function is pure: identical arguments always produce identical
text. Go code is indented with tabs, as gofmt would write it.
"""

import json
from typing import List, Sequence, Tuple

from ..config.distribution import ComponentKind

GENERATED_HEADER = '// Code generated by "otelbuilder". DO NOT EDIT.'
GO_DIRECTIVE = "1.17"

COLLECTOR_COMPONENT_PKG = "go.opentelemetry.io/collector/component"
COLLECTOR_SERVICE_PKG = "go.opentelemetry.io/collector/service"
COLLECTOR_DEFAULTS_PKG = "go.opentelemetry.io/collector/service/defaultcomponents"

# kind -> (Factories field, factory type, map constructor)
FACTORY_SLOTS = {
    ComponentKind.EXTENSION: ("Extensions", "ExtensionFactory", "MakeExtensionFactoryMap"),
    ComponentKind.RECEIVER: ("Receivers", "ReceiverFactory", "MakeReceiverFactoryMap"),
    ComponentKind.PROCESSOR: ("Processors", "ProcessorFactory", "MakeProcessorFactoryMap"),
    ComponentKind.EXPORTER: ("Exporters", "ExporterFactory", "MakeExporterFactoryMap"),
}


def go_string(value: str) -> str:
    """Quote value as a Go interpreted string literal."""
    return json.dumps(value)


def go_mod_token(token: str) -> str:
    """Quote a go.mod token that the go.mod lexer would otherwise split or misread."""
    if _must_quote(token):
        return go_string(token)
    return token


def _must_quote(token: str) -> bool:
    for char in token:
        if char in " \"'`":
            return True
        if char in "()[]{}," and len(token) > 1:
            return True
        if not char.isprintable():
            return True
    return token == "" or "//" in token or "/*" in token


def render_main_go(
    exe_name: str, long_name: str, version: str, blank_imports: Sequence[str]
) -> str:
    """Render the entry point.

    Args:
        exe_name: Executable name reported by the binary
        long_name: Description reported by the binary
        version: Version reported by the binary
        blank_imports: Untagged dependencies imported for side effects
    """
    lines = [
        GENERATED_HEADER,
        "",
        f"// Program {exe_name} is an OpenTelemetry Collector binary.",
        "package main",
        "",
        "import (",
        '\t"log"',
        "",
        f"\t{go_string(COLLECTOR_COMPONENT_PKG)}",
        f"\t{go_string(COLLECTOR_SERVICE_PKG)}",
    ]
    if blank_imports:
        lines.append("")
        lines.extend(f"\t_ {go_string(path)}" for path in blank_imports)
    lines += [
        ")",
        "",
        "func main() {",
        "\tfactories, err := components()",
        "\tif err != nil {",
        '\t\tlog.Fatalf("failed to build components: %v", err)',
        "\t}",
        "",
        "\tinfo := component.BuildInfo{",
        f"\t\tCommand:     {go_string(exe_name)},",
        f"\t\tDescription: {go_string(long_name)},",
        f"\t\tVersion:     {go_string(version)},",
        "\t}",
        "",
        "\tif err := run(service.CollectorSettings{BuildInfo: info, Factories: factories}); err != nil {",
        "\t\tlog.Fatal(err)",
        "\t}",
        "}",
        "",
        "func run(settings service.CollectorSettings) error {",
        "\tcmd := service.NewCommand(settings)",
        "\tif err := cmd.Execute(); err != nil {",
        '\t\tlog.Fatalf("collector server run finished with error: %v", err)',
        "\t}",
        "\treturn nil",
        "}",
    ]
    return "\n".join(lines) + "\n"


def render_components_go(
    include_core: bool, slots: Sequence[Tuple[ComponentKind, List[Tuple[str, str]]]]
) -> str:
    """Render the component registration file.

    Args:
        include_core: Start from the collector's default components
        slots: (kind, [(alias, import_path), ...]) in registration order
    """
    imports = [(alias, path) for _, members in slots for alias, path in members]
    lines = [
        GENERATED_HEADER,
        "",
        "package main",
        "",
        "import (",
        f"\t{go_string(COLLECTOR_COMPONENT_PKG)}",
    ]
    if include_core:
        lines.append(f"\t{go_string(COLLECTOR_DEFAULTS_PKG)}")
    if imports:
        lines.append("")
        for alias, path in sorted(imports, key=lambda item: item[1]):
            lines.append(f"\t{alias} {go_string(path)}")
    lines += [
        ")",
        "",
        "func components() (component.Factories, error) {",
        "\tvar err error",
        "\tfactories := component.Factories{}",
    ]
    if include_core:
        lines += [
            "\tfactories, err = defaultcomponents.Components()",
            "\tif err != nil {",
            "\t\treturn component.Factories{}, err",
            "\t}",
        ]

    for kind, members in slots:
        field, factory_type, constructor = FACTORY_SLOTS[kind]
        variable = field.lower()
        lines.append("")
        lines.append(f"\t{variable} := []component.{factory_type}{{")
        lines.extend(f"\t\t{alias}.NewFactory()," for alias, _ in members)
        lines += [
            "\t}",
            f"\tfor _, factory := range factories.{field} {{",
            f"\t\t{variable} = append({variable}, factory)",
            "\t}",
            f"\tfactories.{field}, err = component.{constructor}({variable}...)",
            "\tif err != nil {",
            "\t\treturn component.Factories{}, err",
            "\t}",
        ]

    lines += [
        "",
        "\treturn factories, nil",
        "}",
    ]
    return "\n".join(lines) + "\n"


def render_go_mod(
    module: str, requires: Sequence[Tuple[str, str]], replaces: Sequence[str]
) -> str:
    """Render the Go module manifest.

    Args:
        module: Module path of the generated program
        requires: (module, version) pairs, already sorted
        replaces: Rendered replace directives with quoted tokens, already sorted
    """
    lines = [
        GENERATED_HEADER,
        "",
        f"module {module}",
        "",
        f"go {GO_DIRECTIVE}",
        "",
        "require (",
    ]
    lines.extend(f"\t{go_mod_token(path)} {version}" for path, version in requires)
    lines.append(")")
    if replaces:
        lines.append("")
        lines.extend(f"replace {directive}" for directive in replaces)
    return "\n".join(lines) + "\n"
