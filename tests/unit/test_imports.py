"""
Tests for import consolidation.
"""

import pytest

from core.generator.imports import ImportConsolidator, consolidate


class TestImportConsolidator:
    """Test cases for ImportConsolidator."""

    def test_merges_named_imports_per_source(self):
        block = consolidate([
            "import { OpenAI } from '@langchain/openai';",
            "import { ChatOpenAI } from '@langchain/openai';",
            "import { LLMChain } from 'langchain/chains';",
            "import { ChatOpenAI } from '@langchain/openai';",
        ])
        assert block == (
            "import { ChatOpenAI, OpenAI } from '@langchain/openai';\n"
            "import { LLMChain } from 'langchain/chains';"
        )

    def test_groups_are_ordered(self):
        block = consolidate([
            "import type { AppConfig } from './types.js';",
            "import { langfuseConfig } from './config.js';",
            "import { Langfuse } from 'langfuse';",
            "import 'dotenv/config';",
        ])
        assert block == (
            "import 'dotenv/config';\n"
            "\n"
            "import { Langfuse } from 'langfuse';\n"
            "\n"
            "import { langfuseConfig } from './config.js';\n"
            "\n"
            "import type { AppConfig } from './types.js';"
        )

    def test_default_and_named_share_a_statement(self):
        block = consolidate(["import fs from 'fs';", "import { readFile } from 'fs';"])
        assert block == "import fs, { readFile } from 'fs';"

    def test_namespace_import(self):
        assert consolidate(["import * as path from 'path';"]) == "import * as path from 'path';"

    def test_side_effect_import_dropped_when_bindings_exist(self):
        block = consolidate(["import 'x';", "import { y } from 'x';"])
        assert block == "import { y } from 'x';"

    def test_several_statements_in_one_fragment(self):
        block = consolidate(["import { Langfuse } from 'langfuse';\nimport { langfuseConfig } from './config.js';"])
        assert block == "import { Langfuse } from 'langfuse';\n\nimport { langfuseConfig } from './config.js';"

    def test_long_binding_lists_wrap(self):
        names = ["AlphaBetaGamma", "DeltaEpsilonZeta", "EtaThetaIota", "KappaLambdaMu", "NuXiOmicron"]
        block = consolidate([f"import {{ {name} }} from 'pkg';" for name in names])
        assert block == (
            "import {\n"
            "  AlphaBetaGamma,\n"
            "  DeltaEpsilonZeta,\n"
            "  EtaThetaIota,\n"
            "  KappaLambdaMu,\n"
            "  NuXiOmicron\n"
            "} from 'pkg';"
        )

    def test_non_import_text_is_kept_at_the_end(self):
        block = consolidate(["import { a } from 'm';\nconst x = 1;"])
        assert block == "import { a } from 'm';\n\nconst x = 1;"

    def test_commonjs(self):
        block = consolidate(
            [
                "import 'dotenv/config';",
                "import { ChatOpenAI } from '@langchain/openai';",
                "import { a as b } from 'm';",
                "import Default from 'd';",
            ],
            module_format="cjs",
        )
        assert block == (
            "require('dotenv/config');\n"
            "\n"
            "const { ChatOpenAI } = require('@langchain/openai');\n"
            "const Default = require('d');\n"
            "const { a: b } = require('m');"
        )

    def test_type_imports_stay_esm_in_commonjs(self):
        block = consolidate(["import type { AppConfig } from './types';"], module_format="cjs")
        assert block == "import type { AppConfig } from './types';"

    def test_double_quotes(self):
        assert consolidate(["import { a } from 'm';"], quote_char='"') == 'import { a } from "m";'

    def test_unknown_module_format(self):
        with pytest.raises(ValueError):
            ImportConsolidator("amd")

    def test_empty_input(self):
        assert consolidate([]) == ""


@pytest.mark.parametrize("module_format", ["esm", "cjs"])
def test_consolidation_is_idempotent(module_format):
    statements = [
        "import 'dotenv/config';",
        "import { PromptTemplate } from '@langchain/core/prompts';",
        "import { ChatPromptTemplate } from '@langchain/core/prompts';",
        "import { AlphaBetaGammaDelta, EpsilonZetaEtaTheta, IotaKappaLambda } from 'wide';",
        "import { x as y } from 'aliased';",
        "import { langfuseConfig } from './config.js';",
    ]
    once = consolidate(statements, module_format)
    assert consolidate([once], module_format) == once
    assert consolidate(once.split("\n"), module_format) == once
