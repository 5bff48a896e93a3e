"""
Example constraint-template sources.

Used by the demo script and the test suite. Each one is a realistic
admission policy of the kind users submit.
"""

# Requires a set of labels on every object.
REQUIRED_LABELS = '''package k8srequiredlabels

violation[{"msg": msg, "details": {"missing_labels": missing}}] {
  provided := {label | input.review.object.metadata.labels[label]}
  required := {label | label := input.parameters.labels[_]}
  missing := required - provided
  count(missing) > 0
  msg := sprintf("you must provide labels: %v", [missing])
}
'''

# Reads other objects through the allowed inventory field.
UNIQUE_INGRESS_HOST = '''package k8suniqueingresshost

identical(obj, review) {
  obj.metadata.namespace == review.object.metadata.namespace
  obj.metadata.name == review.object.metadata.name
}

violation[{"msg": msg}] {
  input.review.kind.kind == "Ingress"
  re_match("^(extensions|networking.k8s.io)$", input.review.kind.group)
  host := input.review.object.spec.rules[_].host
  other := data.inventory.namespace[ns][otherapiversion]["Ingress"][name]
  re_match("^(extensions|networking.k8s.io)/.+$", otherapiversion)
  other.spec.rules[_].host == host
  not identical(other, input.review)
  msg := sprintf("ingress host conflicts with an existing ingress <%v>", [host])
}
'''

# Two result slots built in the head.
CONTAINER_LIMITS = '''package k8scontainerlimits

default max_cpu = "200m"

violation[[{"msg": msg}, container]] {
  container := input.review.object.spec.containers[_]
  not container.resources.limits.cpu
  msg := sprintf("container <%v> has no cpu limit", [container.name])
}

violation[[{"msg": msg}, container]] {
  container := input.review.object.spec.containers[_]
  cpu := container.resources.limits.cpu
  cpu > max_cpu
  msg := sprintf("container <%v> cpu limit %v is above %v", [container.name, cpu, max_cpu])
}
'''

# Reaches outside the sandbox three different ways.
ESCAPES_SANDBOX = '''package escape

violation[{"msg": msg}] {
  secrets := data.kubernetes.secrets
  msg := sprintf("found %v", [count(secrets)])
}

violation[{"msg": msg}] {
  everything := data
  field := "inventory"
  x := data[field]
  msg := "peek"
}
'''

EXAMPLES = {
    "k8srequiredlabels": REQUIRED_LABELS,
    "k8suniqueingresshost": UNIQUE_INGRESS_HOST,
    "k8scontainerlimits": CONTAINER_LIMITS,
    "escape": ESCAPES_SANDBOX,
}
