import copy
import json
from pathlib import Path
from unittest import TestCase

from openapi_descriptors import DescriptorGenerator, GeneratorConfig, InvalidInputError
from openapi_descriptors.config import SecurityConfigSource
from openapi_descriptors.report import render_report

TEST_DATA = Path(__file__).parent / "test_data"


def load_petstore() -> dict:
    with open(TEST_DATA / "petstore.json") as f:
        return json.load(f)


class TestDescriptorGenerator(TestCase):
    def setUp(self):
        self.raw = load_petstore()
        self.result = DescriptorGenerator(self.raw).generate()

    def test_models(self):
        self.assertEqual([m.name for m in self.result.models], ["Task", "Owner", "OwnerAddress"])

        owner = self.result.models[1]
        self.assertEqual([p.name for p in owner.properties], ["Name", "OwnerValue", "Address", "Pets", "Task"])
        task = owner.properties[-1]
        self.assertEqual(task.type_ref.name, "Api.Generated.Models.Task")
        self.assertTrue(task.type_ref.is_nullable)
        self.assertEqual(owner.properties[2].type_ref.name, "OwnerAddress")
        self.assertEqual(owner.properties[3].type_ref.element.name, "Pet")

    def test_polymorphic(self):
        self.assertEqual(len(self.result.polymorphic), 1)
        union = self.result.polymorphic[0]
        self.assertEqual(union.name, "Pet")
        self.assertEqual([v.name for v in union.variants], ["Cat", "Dog", "Bird"])
        self.assertTrue(all(v.base_type == "Pet" for v in union.variants))
        self.assertEqual([v.discriminator_value for v in union.variants], ["cat", "dog", "bird"])

        cat = union.variants[0]
        self.assertEqual([p.name for p in cat.properties], ["Kind", "Name", "Indoor"])
        self.assertTrue(cat.properties[-1].has_default)

    def test_enums_tuples_arrays(self):
        self.assertEqual({e.name for e in self.result.enums}, {"PetStatus", "DogKind"})
        self.assertEqual([t.name for t in self.result.tuples], ["Point"])
        self.assertEqual(self.result.tuples[0].field_names, ["X", "Y", "Item3"])
        self.assertEqual([a.name for a in self.result.arrays], ["Tags"])

    def test_conflicts(self):
        self.assertEqual(self.result.conflicts, {"Task": "Api.Generated.Models.Task"})

    def test_operations(self):
        self.assertEqual(
            [h.operation_id for h in self.result.handlers],
            ["listPets", "createPet", "GET_pets_petId", "uploadPhoto"],
        )
        self.assertEqual(
            [p.name for p in self.result.parameters],
            ["ListPetsParameters", "CreatePetParameters", "UploadPhotoParameters"],
        )
        self.assertEqual(
            [r.name for r in self.result.inline_records],
            ["CreatePetRequest", "CreatePetResponse400"],
        )

    def test_operation_policies(self):
        policies = self.result.operation_policies
        cache = policies["listPets"].cache
        self.assertEqual(cache.policy_name, "default-cache")
        self.assertEqual(cache.expiration_seconds, 60)
        self.assertEqual(cache.tags, ("a", "b", "c", "hot"))

        self.assertFalse(policies["createPet"].cache.enabled)
        self.assertEqual(policies["createPet"].retry.max_attempts, 5)
        self.assertIsNone(policies["listPets"].retry)

        self.assertEqual(policies["GET_pets_petId"].rate_limit.permit_limit, 10)
        self.assertTrue(policies["GET_pets_petId"].security.allow_anonymous)
        self.assertTrue(policies["uploadPhoto"].security.authentication_required)

    def test_named_policies(self):
        self.assertEqual(list(self.result.cache_policies), ["default-cache"])
        self.assertEqual(list(self.result.retry_policies), ["standard"])
        self.assertEqual(list(self.result.rate_limit_policies), ["per-user"])
        self.assertEqual(len(self.result.security_policies), 3)
        self.assertEqual([s.name for s in self.result.security_schemes], ["oauth2", "bearer"])

    def test_input_is_not_mutated(self):
        raw = load_petstore()
        snapshot = copy.deepcopy(raw)
        DescriptorGenerator(raw).generate()
        self.assertEqual(raw, snapshot)

    def test_result_is_json_serializable(self):
        data = json.loads(json.dumps(self.result.to_dict()))
        self.assertEqual(data["conflicts"], {"Task": "Api.Generated.Models.Task"})
        self.assertEqual(data["handlers"][0]["handler_name"], "IListPetsHandler")

    def test_report(self):
        report = render_report(self.result, title="petstore")
        self.assertIn("Handlers: 4", report)
        self.assertIn("IListPetsHandler", report)
        self.assertIn('Pet by "kind"', report)
        self.assertIn("Task -> Api.Generated.Models.Task", report)


class TestGeneratorConfig(TestCase):
    def test_include_deprecated(self):
        config = GeneratorConfig(include_deprecated=True)
        result = DescriptorGenerator(load_petstore(), config).generate()
        self.assertEqual(len(result.handlers), 5)
        self.assertIn("Legacy", [m.name for m in result.models])

    def test_policy_toggles(self):
        config = GeneratorConfig.from_dict(
            {"policies": {"enable_cache": False, "enable_security": False}, "unknown": 1}
        )
        result = DescriptorGenerator(load_petstore(), config).generate()
        self.assertEqual(result.cache_policies, {})
        self.assertEqual(result.security_policies, [])
        self.assertIsNone(result.operation_policies["listPets"].cache)
        self.assertIsNone(result.operation_policies["listPets"].security)
        self.assertEqual(list(result.retry_policies), ["standard"])

    def test_config_round_trip(self):
        config = GeneratorConfig.from_dict({"project_name": "PetStore", "security": {"source": "schemes"}})
        self.assertEqual(config.security.source, SecurityConfigSource.SCHEMES)
        self.assertEqual(GeneratorConfig.from_dict(config.to_dict()).to_dict(), config.to_dict())

    def test_unknown_policy_toggles_are_ignored(self):
        config = GeneratorConfig.from_dict({"policies": {"enable_retry": False, "enable_tracing": True}})
        self.assertFalse(config.policies.enable_retry)
        self.assertTrue(config.policies.enable_cache)

    def test_unknown_security_source(self):
        with self.assertRaises(InvalidInputError):
            GeneratorConfig.from_dict({"security": {"source": "bogus"}})

    def test_config_must_be_a_mapping(self):
        with self.assertRaises(InvalidInputError):
            GeneratorConfig.from_dict(["project_name"])

    def test_project_name_qualifies_conflicts(self):
        config = GeneratorConfig(project_name="PetStore")
        result = DescriptorGenerator(load_petstore(), config).generate()
        self.assertEqual(result.conflicts, {"Task": "PetStore.Generated.Models.Task"})

    def test_empty_document(self):
        result = DescriptorGenerator({"openapi": "3.1.0", "paths": {}}).generate()
        self.assertEqual(result.models, [])
        self.assertEqual(result.handlers, [])
        self.assertEqual(result.conflicts, {})

    def test_invalid_document(self):
        with self.assertRaises(InvalidInputError):
            DescriptorGenerator(None)
