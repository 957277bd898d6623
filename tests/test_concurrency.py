import unittest
import threading
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../')))

from adaptive_card import CardRuntime, RenderConfig
from adaptive_card.card_validator import validate_card
from adaptive_card.features import summarize
from adaptive_card.interaction import translate


CARD = {
    "type": "AdaptiveCard",
    "version": "1.5",
    "body": [
        {"type": "TextBlock", "text": "Hi @{user.name}"},
        {"type": "TextBlock", "text": "{{#each payload.items}}{{this}};{{/each}}"},
        {"type": "TextBlock", "text": '${payload.vip == true ? "VIP" : "Regular"}'},
        {"type": "Input.Text", "id": "comment"},
    ],
    "actions": [{"type": "Action.Submit", "id": "go"}],
}


class TestRenderConcurrency(unittest.TestCase):
    """
    Renders with distinct contexts share nothing; results must not bleed
    between threads.
    """

    def test_concurrent_renders(self):
        runtime = CardRuntime(RenderConfig())
        exceptions = []
        results = {}

        def runner(n):
            try:
                ctx = {"payload": {"user": {"name": f"user-{n}"}, "items": [n, n + 1], "vip": n % 2 == 0}}
                results[n] = runtime.render(CARD, ctx).card
            except Exception as e:
                exceptions.append(e)

        threads = [threading.Thread(target=runner, args=(n,)) for n in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(exceptions), 0, f"Exceptions occurred: {exceptions}")
        self.assertEqual(len(results), 20)
        for n, card in results.items():
            body = card["body"]
            self.assertEqual(body[0]["text"], f"Hi user-{n}")
            self.assertEqual(body[1]["text"], f"{n};{n + 1};")
            self.assertEqual(body[2]["text"], "VIP" if n % 2 == 0 else "Regular")

    def test_consumers_share_one_rendered_tree(self):
        rendered = CardRuntime(RenderConfig()).render(CARD, {"payload": {"user": {"name": "Ada"}}}).card
        expected = (
            validate_card(rendered),
            summarize(rendered),
            translate({"interactionType": "Submit", "actionId": "go", "cardInstanceId": "c"}, rendered),
        )
        outputs = []
        errors = []

        def consume():
            try:
                outputs.append((
                    validate_card(rendered),
                    summarize(rendered),
                    translate({"interactionType": "Submit", "actionId": "go", "cardInstanceId": "c"}, rendered),
                ))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=consume) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        self.assertEqual(len(outputs), 10)
        for output in outputs:
            self.assertEqual(output, expected)


if __name__ == "__main__":
    unittest.main()
