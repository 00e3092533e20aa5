from pathlib import Path

import pytest

from .helpers import write_manifest


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """A small monorepo: two apps, two libs and a root manifest.

    web -> ui -> utils, api -> utils, with lodash declared at two versions.
    """
    write_manifest(
        tmp_path,
        name="acme",
        private=True,
        dependencies={"react": "^18.2.0", "react-dom": "^18.2.0"},
        devDependencies={"typescript": "^5.0.0"},
    )
    write_manifest(
        tmp_path / "apps" / "web",
        name="@acme/web",
        version="1.0.0",
        dependencies={"@acme/ui": "*", "lodash": "^4.17.21", "react": "^18.2.0"},
        devDependencies={"jest": "^29.0.0"},
    )
    write_manifest(
        tmp_path / "apps" / "api",
        name="@acme/api",
        version="1.0.0",
        dependencies={"utils": "workspace:*", "express": "^4.18.0", "lodash": "^4.17.15"},
    )
    write_manifest(
        tmp_path / "libs" / "ui",
        name="@acme/ui",
        version="0.3.0",
        dependencies={"utils": "workspace:*"},
        peerDependencies={"react": "^18.0.0"},
    )
    write_manifest(
        tmp_path / "libs" / "utils",
        name="utils",
        version="0.1.0",
        dependencies={"lodash": "^4.17.21"},
    )

    (tmp_path / "apps" / "web" / "src").mkdir()
    (tmp_path / "apps" / "web" / "src" / "index.tsx").write_text(
        "import React from 'react';\n"
        "import { Button } from '@acme/ui';\n"
        "import chunk from 'lodash/chunk';\n"
        "import './styles.css';\n",
        encoding="utf-8",
    )
    (tmp_path / "apps" / "api" / "main.js").write_text(
        "const express = require('express');\n"
        "const { merge } = require('lodash');\n"
        "const axios = require('axios');\n",
        encoding="utf-8",
    )
    return tmp_path
