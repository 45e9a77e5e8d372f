import logging
import os
import sys

import sshlink
from sshlink import auth, keys

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

# Push a build directory, restart the service, then pull its logs back.
# The deploy key is created on first run; add the printed line to the
# target's ~/.ssh/authorized_keys before running again.

pair = keys.read_or_generate("~/.config/sshlink-demo/id_rsa", comment="sshlink-demo")
print("public key:", pair.public_key, end="")

opts = sshlink.ConnectionOptions(
    os.environ.get("DEMO_HOST", "localhost"),
    username=os.environ.get("DEMO_USER"),
    auth=auth.key_without_passphrase(pair.private_key),
)

with sshlink.connect(opts) as client:
    client.upload("./build", "/srv/demo")
    client.run(
        sshlink.Command(
            "systemctl --user restart demo && systemctl --user status demo",
            env={"LC_ALL": "C"},
            stdout=sys.stdout.buffer,
            stderr=sys.stderr.buffer,
        )
    )
    client.download("/srv/demo/logs", "./logs")
