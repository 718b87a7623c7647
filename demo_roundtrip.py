#!/usr/bin/env python3
"""
Round-trip Demo: Model → LDML → Model → merged LDML

Shows the full workflow:
1. Build an example writing system
2. Write it to an LDML file
3. Add foreign content by hand and read the file back
4. Write the model again, merged against the edited file
"""

import logging
import sys
import tempfile
from pathlib import Path

from wsldml.examples import build_example_writing_system
from wsldml.mapper import LdmlDataMapper
from wsldml.model import WritingSystemDefinition
from wsldml.serialization import ws_to_yaml


def main():
    logging.basicConfig(level=logging.DEBUG if "-v" in sys.argv else logging.WARNING)
    mapper = LdmlDataMapper()

    print("=" * 80)
    print("ROUND-TRIP DEMO: Model → LDML → Model → merged LDML")
    print("=" * 80)

    with tempfile.TemporaryDirectory() as directory:
        path = Path(directory) / "en-Latn-US-x-etic.ldml"

        # =====================================================================
        # STEP 1-2: Build and write
        # =====================================================================
        print("\n1. WRITING EXAMPLE WRITING SYSTEM...")
        ws = build_example_writing_system()
        mapper.write(path, ws)
        print(f"   ✓ Wrote {path.name} ({path.stat().st_size} bytes)")

        # =====================================================================
        # STEP 3: Foreign content survives a read/write cycle
        # =====================================================================
        print("\n2. ADDING FOREIGN CONTENT AND READING BACK...")
        text = path.read_text(encoding="utf-8")
        text = text.replace("<identity>", "<identity>\n\t\t<!-- reviewed by hand -->", 1)
        text = text.replace("</ldml>", "\t<dates><calendars/></dates>\n</ldml>", 1)
        path.write_text(text, encoding="utf-8")

        loaded = WritingSystemDefinition()
        mapper.read(path, loaded)
        print(f"   ✓ Language tag: {loaded.language_tag}")
        print(f"   ✓ Character sets: {[csd.type for csd in loaded.character_sets]}")
        print(f"   ✓ Collations: {[c.type for c in loaded.collations]}")

        # =====================================================================
        # STEP 4: Merge and show the result
        # =====================================================================
        print("\n3. MERGED OUTPUT:")
        print("-" * 80)
        loaded.version_number = "1.3"
        mapper.write(path, loaded, prior=path)
        print(path.read_text(encoding="utf-8"))

        print("\n4. MODEL SNAPSHOT (YAML):")
        print("-" * 80)
        print(ws_to_yaml(loaded))


if __name__ == "__main__":
    main()
