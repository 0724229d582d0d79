"""
Example: Driving the sandbox the way an agent would

Builds SandboxTools for a directory, prints the tool schemas an agent would
receive, then replays a few tool calls, including one that tries to escape
the root.

Usage:
    python examples/agent_tool_calls.py [ROOT]
"""

import asyncio
import json
import sys
from pathlib import Path

from peekaboo.filesystem import SandboxConfig, SandboxTools


async def main(root: Path):
    config = SandboxConfig(root_directory=root, max_depth=3)
    tools = SandboxTools(config)

    print("Tool schemas:")
    for schema in tools.get_tool_schemas():
        print(f"  - {schema['function']['name']}: {schema['function']['description']}")

    calls = [
        ("search_path", {"pattern": "**/*.py"}),
        ("search_content", {"query": r"def \w+", "include": "*.py"}),
        ("read_file", {"path": "pyproject.toml"}),
        ("read_file", {"path": "../../etc/passwd"}),
    ]

    for name, arguments in calls:
        print(f"\n>>> {name}({json.dumps(arguments)})")
        result = await tools.execute_tool(name, arguments)

        if not result["success"]:
            print(f"error {result['error_code']}: {result['error']}")
        elif "text" in result:
            print(result["text"])
        else:
            print(result["content"][:500])

    print("\nHealth:")
    print(json.dumps(tools.health_check(), indent=2))


if __name__ == "__main__":
    asyncio.run(main(Path(sys.argv[1] if len(sys.argv) > 1 else ".")))
