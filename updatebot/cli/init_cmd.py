"""Initialize an updatebot config in a repository."""

from pathlib import Path
from typing import Optional

CONFIG_TEMPLATE = '''apiVersion: updatebot.jenkins-x.io/v1alpha1
kind: UpdateConfig
spec:
  rules:
    - urls:
        - https://github.com/myorg/downstream.git
      changes:
        # Replace the 'version' group in matching files
        - regex:
            pattern: "version: (?P<version>.*)"
            files:
              - "charts/*/values.yaml"
        # Or run a command, $VERSION holds the new version
        # - command:
        #     name: make
        #     args: ["bump", "VERSION=$VERSION"]
'''

WORKFLOW_TEMPLATE = '''name: Updatebot

on:
  release:
    types: [published]

jobs:
  updatebot:
    name: Promote release to downstream repositories
    runs-on: ubuntu-latest

    steps:
      - uses: actions/checkout@v4

      - uses: astral-sh/setup-uv@v4

      - name: Create Pull Requests
        env:
          GITHUB_TOKEN: ${{ secrets.UPDATEBOT_TOKEN }}
        run: |
          uvx updatebot pr \\
            --version "${{ github.event.release.tag_name }}"
'''


def init_repository(target_dir: Optional[Path] = None, workflow: bool = False) -> bool:
    """
    Initialize updatebot in a repository.

    Creates:
      - .jx/updatebot.yaml
      - .github/workflows/updatebot.yml (with workflow=True)
    """
    target = target_dir or Path.cwd()

    # Check if git repo
    if not (target / ".git").exists():
        print(f"Error: {target} is not a git repository")
        return False

    created_files = []

    config_file = target / ".jx" / "updatebot.yaml"
    if config_file.exists():
        print(f"Already exists: {config_file}")
    else:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config_file.write_text(CONFIG_TEMPLATE)
        print(f"Created: {config_file}")
        created_files.append(config_file)

    if workflow:
        workflow_file = target / ".github" / "workflows" / "updatebot.yml"
        if workflow_file.exists():
            print(f"Already exists: {workflow_file}")
        else:
            workflow_file.parent.mkdir(parents=True, exist_ok=True)
            workflow_file.write_text(WORKFLOW_TEMPLATE)
            print(f"Created: {workflow_file}")
            created_files.append(workflow_file)

    if created_files:
        print("\nNext steps:")
        print("  1. Edit .jx/updatebot.yaml to list your downstream repositories")
        print("  2. git add . && git commit -m 'Add updatebot config'")
        print("  3. Run: updatebot pr --version <version>")
    else:
        print("\nAlready configured. No changes needed.")

    return True
